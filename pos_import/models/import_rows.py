from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from ..config.templates import get_template
from ..excel.coercion import (
    parse_locale_boolean,
    parse_locale_number,
    parse_product_type,
    parse_tax_rate,
    parse_visibility,
)
from .entity_type import EntityType
from .parse_result import CellValue, ParsedRow

"""Typed import records.

Each reconciliation routine converts the generic ParsedRow.data map into one
of these records first. Direct-copy columns are found through the template
registry by target field, so header text lives in one place only; lookup
columns (no target field) are read by their column key.
"""

__all__ = [
    "CustomerImportRow",
    "PriceImportRow",
    "ProductImportRow",
    "StockImportRow",
    "SupplierImportRow",
]


def text_value(value: CellValue) -> str | None:
    """Trimmed text of a cell, None when blank."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _by_target(row: ParsedRow, entity_type: EntityType) -> dict[str, CellValue]:
    out: dict[str, CellValue] = {}
    for column in get_template(entity_type).columns:
        if column.target_field is not None:
            out[column.target_field] = row.data.get(column.key)
    return out


def _lookup(row: ParsedRow, key: str) -> str | None:
    return text_value(row.data.get(key))


class _SparseMixin:
    # fields that never go into the write payload as-is
    _NON_PAYLOAD: tuple[str, ...] = ()

    def sparse_fields(self) -> dict[str, Any]:
        """Payload of every non-None field, skipping lookups and keys."""
        out: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._NON_PAYLOAD:
                continue
            value = getattr(self, f.name)
            if value is not None:
                out[f.name] = value
        return out


@dataclass(frozen=True)
class ProductImportRow(_SparseMixin):
    sku: str
    name: str
    category: str | None
    subcategory: str | None
    supplier: str | None
    description: str | None = None
    barcode: str | None = None
    cost: float | None = None
    price: float | None = None
    margin_percentage: float | None = None
    tax_rate: float | None = None
    active: bool | None = None
    visibility: str | None = None
    product_type: str | None = None
    image_url: str | None = None

    _NON_PAYLOAD = ("category", "subcategory", "supplier")

    @classmethod
    def from_parsed(cls, row: ParsedRow) -> ProductImportRow:
        d = _by_target(row, EntityType.PRODUCTS)
        return cls(
            sku=text_value(d["sku"]) or "",
            name=text_value(d["name"]) or "",
            category=_lookup(row, "Categoría"),
            subcategory=_lookup(row, "Subcategoría"),
            supplier=_lookup(row, "Proveedor"),
            description=text_value(d["description"]),
            barcode=text_value(d["barcode"]),
            cost=parse_locale_number(d["cost"]),
            price=parse_locale_number(d["price"]),
            margin_percentage=parse_locale_number(d["margin_percentage"]),
            tax_rate=parse_tax_rate(d["tax_rate"]),
            active=parse_locale_boolean(d["active"]),
            visibility=parse_visibility(d["visibility"]),
            product_type=parse_product_type(d["product_type"]),
            image_url=text_value(d["image_url"]),
        )


@dataclass(frozen=True)
class StockImportRow:
    sku: str
    location: str | None
    quantity: float | None

    @classmethod
    def from_parsed(cls, row: ParsedRow) -> StockImportRow:
        d = _by_target(row, EntityType.STOCK)
        return cls(
            sku=text_value(d["sku"]) or "",
            location=_lookup(row, "Depósito/ubicación"),
            quantity=parse_locale_number(d["quantity"]),
        )


@dataclass(frozen=True)
class PriceImportRow(_SparseMixin):
    sku: str
    price_list: str | None
    cost: float | None = None
    price: float | None = None
    margin_percentage: float | None = None

    _NON_PAYLOAD = ("sku", "price_list")

    @classmethod
    def from_parsed(cls, row: ParsedRow) -> PriceImportRow:
        d = _by_target(row, EntityType.PRICES)
        return cls(
            sku=text_value(d["sku"]) or "",
            price_list=_lookup(row, "Lista de Precios"),
            cost=parse_locale_number(d["cost"]),
            price=parse_locale_number(d["price"]),
            margin_percentage=parse_locale_number(d["margin_percentage"]),
        )


@dataclass(frozen=True)
class CustomerImportRow(_SparseMixin):
    name: str
    tax_id: str | None = None
    trade_name: str | None = None
    tax_id_type: str | None = None
    tax_category: str | None = None
    email: str | None = None
    phone: str | None = None
    street_address: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None

    @classmethod
    def from_parsed(cls, row: ParsedRow) -> CustomerImportRow:
        d = _by_target(row, EntityType.CUSTOMERS)
        return cls(**{k: text_value(v) for k, v in d.items()} | {"name": text_value(d["name"]) or ""})


@dataclass(frozen=True)
class SupplierImportRow(_SparseMixin):
    name: str
    tax_id: str | None = None
    trade_name: str | None = None
    contact_person: str | None = None
    email: str | None = None
    phone: str | None = None
    street_address: str | None = None
    city: str | None = None
    province: str | None = None
    notes: str | None = None

    @classmethod
    def from_parsed(cls, row: ParsedRow) -> SupplierImportRow:
        d = _by_target(row, EntityType.SUPPLIERS)
        return cls(**{k: text_value(v) for k, v in d.items()} | {"name": text_value(d["name"]) or ""})

    def sparse_fields(self) -> dict[str, Any]:
        out = super().sparse_fields()
        if self.tax_id is not None:
            out["tax_id_type"] = "CUIT"
        return out
