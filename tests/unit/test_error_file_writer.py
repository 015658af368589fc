from __future__ import annotations

import io

import pandas as pd
from openpyxl import load_workbook

from pos_import.config.templates import ERROR_COLUMN_HEADER, get_template
from pos_import.excel.reader import parse_import_file
from pos_import.excel.writer import generate_error_file, generate_template_file, merge_errors


def _read(buf: bytes) -> pd.DataFrame:
    return pd.read_excel(io.BytesIO(buf), header=None, dtype=object, keep_default_na=False, na_values=[])


def _products(row_factory, n: int, failing: set[int]):
    rows = []
    for i in range(n):
        errors = [f"error {i}a", f"error {i}b"] if i in failing else []
        rows.append(row_factory("products", row_number=i + 4, errors=errors,
                                cells={"Código SKU": f"S{i}", "Nombre": f"Item {i}"}))
    return rows


def test_only_failing_rows_are_written(row_factory):
    rows = _products(row_factory, 10, failing={1, 4, 7})
    df = _read(generate_error_file(rows, "products"))
    keys = get_template("products").keys

    # banner, headers, descriptions, then exactly the failing rows
    assert len(df) == 3 + 3
    assert list(df.iloc[1]) == keys + [ERROR_COLUMN_HEADER]
    data = df.iloc[3:]
    assert list(data[0]) == ["S1", "S4", "S7"]
    assert list(data[len(keys)]) == ["error 1a; error 1b", "error 4a; error 4b", "error 7a; error 7b"]


def test_reconcile_errors_are_merged(row_factory):
    rows = _products(row_factory, 3, failing=set())
    df = _read(generate_error_file(rows, "products", [(5, 'Producto con SKU "S1" no encontrado')]))
    assert len(df) == 4
    assert df.iloc[3][0] == "S1"
    assert df.iloc[3][15] == 'Producto con SKU "S1" no encontrado'


def test_merge_errors_does_not_duplicate_parse_errors(row_factory):
    rows = _products(row_factory, 2, failing={0})
    merge_errors(rows, [(4, rows[0].error_text()), (4, "otro error"), (99, "sin fila")])
    assert rows[0].errors == ["error 0a", "error 0b", "otro error"]
    assert rows[1].errors == []


def test_sheet_name_and_banner(row_factory):
    rows = _products(row_factory, 1, failing={0})
    wb = load_workbook(io.BytesIO(generate_error_file(rows, "products")))
    ws = wb["Datos"]
    assert ws.cell(row=1, column=1).value == get_template("products").instruction
    assert ws.cell(row=2, column=16).value == ERROR_COLUMN_HEADER
    assert ws.merged_cells.ranges


def test_error_file_can_be_uploaded_again(row_factory):
    rows = _products(row_factory, 2, failing={0, 1})
    rows[0].data["Categoría"] = "Ferretería"
    rows[1].data["Categoría"] = "Bulonería"
    buf = generate_error_file(rows, "products")

    reparsed = parse_import_file(buf, "products")
    assert reparsed.total_rows == 2
    assert reparsed.success is True
    assert [r.data["Código SKU"] for r in reparsed.rows] == ["S0", "S1"]


def test_blank_template_has_headers_and_no_data():
    buf = generate_template_file("stock")
    df = _read(buf)
    assert len(df) == 3
    assert list(df.iloc[1]) == [c.header for c in get_template("stock").columns]
    assert parse_import_file(buf, "stock").total_rows == 0
