from __future__ import annotations

import pytest

from pos_import.services.reconcile import import_customers, import_suppliers

ORG = "org-1"


def test_customer_created_then_matched_by_tax_id(store, row_factory):
    row = row_factory("customers", cells={"Nombre": "Juan Pérez", "Nº documento": "20123456789",
                                          "Tipo documento": "CUIT", "Email": "juan@example.com"})
    assert import_customers([row], ORG, store).created == 1

    renamed = row_factory("customers", cells={"Nombre": "Juan A. Pérez", "Nº documento": "20123456789"})
    result = import_customers([renamed], ORG, store)
    assert (result.created, result.updated) == (0, 1)

    customer = store.find_by_natural_key("customers", ORG, {"tax_id": "20123456789"})
    assert customer["name"] == "Juan A. Pérez"
    assert customer["email"] == "juan@example.com"
    assert store.count("customers") == 1


def test_customer_falls_back_to_name(store, row_factory):
    existing = store.create_record("customers", ORG, {"name": "Almacén Don Pepe"})
    row = row_factory("customers", cells={"Nombre": "ALMACÉN DON PEPE", "Teléfono": "11-5555-0000"})
    result = import_customers([row], ORG, store)
    assert result.updated == 1
    assert store.get("customers", existing["id"])["phone"] == "11-5555-0000"


def test_numeric_tax_id_cell_is_text(store, row_factory):
    row = row_factory("customers", cells={"Nombre": "Ana", "Nº documento": 30111222})
    import_customers([row], ORG, store)
    assert store.find_by_natural_key("customers", ORG, {"tax_id": "30111222"})["name"] == "Ana"


def test_supplier_tax_id_sets_cuit_type(store, row_factory):
    rows = [
        row_factory("suppliers", 4, cells={"Nombre": "Distribuidora Sur", "CUIT": "30-71234567-8"}),
        row_factory("suppliers", 5, cells={"Nombre": "Sin CUIT SRL"}),
    ]
    assert import_suppliers(rows, ORG, store).created == 2
    with_cuit = store.find_by_natural_key("suppliers", ORG, {"tax_id": "30-71234567-8"})
    assert with_cuit["tax_id_type"] == "CUIT"
    without = store.find_by_natural_key("suppliers", ORG, {"name": "sin cuit srl"})
    assert "tax_id_type" not in without


def test_supplier_reimport_is_idempotent(store, row_factory):
    rows = [row_factory("suppliers", cells={"Nombre": "ACME", "CUIT": "30-1", "Notas": "pagar a 30 días"})]
    import_suppliers(rows, ORG, store)
    second = import_suppliers(rows, ORG, store)
    assert (second.created, second.updated, second.failed) == (0, 1, 0)
    assert store.count("suppliers") == 1


def test_duplicate_tax_id_in_same_file_updates(store, row_factory):
    rows = [
        row_factory("customers", 4, cells={"Nombre": "Uno", "Nº documento": "1"}),
        row_factory("customers", 5, cells={"Nombre": "Dos", "Nº documento": "1"}),
    ]
    result = import_customers(rows, ORG, store)
    assert (result.created, result.updated) == (1, 1)
    assert store.find_by_natural_key("customers", ORG, {"tax_id": "1"})["name"] == "Dos"


@pytest.mark.parametrize("kind, tax_column, run", [
    ("customers", "Nº documento", import_customers),
    ("suppliers", "CUIT", import_suppliers),
])
def test_tax_id_match_wins_over_name_match(store, row_factory, kind, tax_column, run):
    by_tax = store.create_record(kind, ORG, {"name": "Uno", "tax_id": "1"})
    by_name = store.create_record(kind, ORG, {"name": "Dos"})

    row = row_factory(kind, cells={"Nombre": "Dos", tax_column: "1"})
    result = run([row], ORG, store)

    assert (result.created, result.updated, result.failed) == (0, 1, 0)
    assert store.get(kind, by_tax["id"])["name"] == "Dos"
    assert store.get(kind, by_name["id"]) == by_name
    assert store.count(kind) == 2
