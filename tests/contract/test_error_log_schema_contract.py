from __future__ import annotations

import json
import pathlib

import jsonschema
import pytest
from jsonschema.exceptions import ValidationError

from pos_import.models.error_record import ErrorRecord

"""Error log JSON Lines record contract."""

SCHEMA_PATH = pathlib.Path(__file__).with_name("error_log_schema.json")


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_generated_record_matches_schema(schema):
    rec = ErrorRecord.create("productos.xlsx", "products", 7, "RECONCILE_ERROR", 'Producto con SKU "A1" no encontrado')
    jsonschema.validate(json.loads(rec.to_json_line()), schema)


def test_schema_accepts_row_minus_one(schema):
    rec = ErrorRecord.create("x.xlsx", "stock", -1, "UNREADABLE_WORKBOOK", "El archivo no contiene datos.")
    jsonschema.validate(json.loads(rec.to_json_line()), schema)


def test_schema_rejects_row_less_than_minus_one(schema):
    record = json.loads(ErrorRecord.create("x.xlsx", "stock", 4, "RECONCILE_ERROR", "m").to_json_line())
    record["row"] = -2
    with pytest.raises(ValidationError):
        jsonschema.validate(record, schema)


def test_schema_rejects_extra_key(schema):
    record = json.loads(ErrorRecord.create("x.xlsx", "stock", 4, "RECONCILE_ERROR", "m").to_json_line())
    record["sheet"] = "Datos"
    with pytest.raises(ValidationError):
        jsonschema.validate(record, schema)


def test_schema_rejects_unknown_error_type(schema):
    record = json.loads(ErrorRecord.create("x.xlsx", "stock", 4, "CONSTRAINT_VIOLATION", "m").to_json_line())
    with pytest.raises(ValidationError):
        jsonschema.validate(record, schema)
