from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..db.store import ImportStore, Record, StoreError
from ..models.entity_type import EntityType
from ..models.import_result import ImportResult
from ..models.import_rows import (
    CustomerImportRow,
    PriceImportRow,
    ProductImportRow,
    StockImportRow,
    SupplierImportRow,
)
from ..models.parse_result import ParsedRow
from .progress import RowProgressTracker
from .resolver import (
    CreateIfMissing,
    DefaultIfMissing,
    FailIfMissing,
    ResolutionError,
    resolve_by_name,
)

"""Reconciliation engine: validated rows -> create/update against the store.

Rows run strictly in order. The per-run caches (categories, suppliers,
default location) live on ReconcileContext, so two rows introducing the same
new category share one record, and separate runs never share state.

A row failure (parse error, unresolved lookup, store error) is recorded on
the ImportResult and the loop moves on; nothing here aborts the batch except
an unsupported entity type, which is rejected before the first row.
"""

__all__ = [
    "ReconcileContext",
    "RowRejected",
    "import_customers",
    "import_prices",
    "import_products",
    "import_stock",
    "import_suppliers",
    "reconcile",
]

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Error desconocido"
_UNSET: Any = object()


class RowRejected(Exception):
    """A row cannot be applied; the message is shown to the user as-is."""


class RowOutcome(Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass
class ReconcileContext:
    store: ImportStore
    scope_id: str
    result: ImportResult = field(default_factory=ImportResult)
    progress: RowProgressTracker | None = None
    # "bebidas" -> id, "bebidas/gaseosas" -> id (child scoped under parent key)
    category_cache: dict[str, Any] = field(default_factory=dict)
    # lower-cased name -> id or None (misses are cached too)
    supplier_cache: dict[str, Any] = field(default_factory=dict)
    default_location_id: Any = _UNSET


RowHandler = Callable[[ReconcileContext, ParsedRow], RowOutcome]


def _run(ctx: ReconcileContext, rows: Sequence[ParsedRow], handler: RowHandler) -> ImportResult:
    result = ctx.result
    for row in rows:
        if row.has_errors:
            result.record_failure(row, row.error_text())
        else:
            try:
                outcome = handler(ctx, row)
            except (RowRejected, ResolutionError, StoreError) as e:
                logger.debug("row=%d rejected: %s", row.row_number, e)
                result.record_failure(row, str(e) or UNKNOWN_ERROR)
            except Exception as e:
                logger.warning("row=%d unexpected error: %s", row.row_number, e, exc_info=True)
                result.record_failure(row, str(e) or UNKNOWN_ERROR)
            else:
                if outcome is RowOutcome.CREATED:
                    result.record_created()
                else:
                    result.record_updated()
        if ctx.progress is not None:
            ctx.progress.advance(result)
    return result


def _find_product(ctx: ReconcileContext, sku: str) -> Record | None:
    return ctx.store.find_by_natural_key("products", ctx.scope_id, {"sku": sku.strip()})


def _require_product(ctx: ReconcileContext, sku: str) -> Record:
    product = _find_product(ctx, sku)
    if product is None:
        raise RowRejected(f'Producto con SKU "{sku}" no encontrado')
    return product


# products -----------------------------------------------------------------

def _resolve_category(ctx: ReconcileContext, rec: ProductImportRow) -> Any:
    if not rec.category:
        return None
    cache = ctx.category_cache
    cat_key = rec.category.lower()
    if cat_key in cache:
        category_id = cache[cat_key]
    else:
        category_id = resolve_by_name(
            ctx.store, "categories", ctx.scope_id, rec.category, CreateIfMissing(), filters={"parent_id": None}
        )
        cache[cat_key] = category_id

    if rec.subcategory and category_id is not None:
        sub_key = f"{cat_key}/{rec.subcategory.lower()}"
        if sub_key in cache:
            return cache[sub_key]
        sub_id = resolve_by_name(
            ctx.store, "categories", ctx.scope_id, rec.subcategory, CreateIfMissing(),
            filters={"parent_id": category_id},
        )
        cache[sub_key] = sub_id
        return sub_id
    return category_id


def _resolve_supplier(ctx: ReconcileContext, name: str | None) -> Any:
    if not name:
        return None
    key = name.lower()
    if key not in ctx.supplier_cache:
        ctx.supplier_cache[key] = resolve_by_name(
            ctx.store, "suppliers", ctx.scope_id, name, DefaultIfMissing(None)
        )
    return ctx.supplier_cache[key]


def _apply_product(ctx: ReconcileContext, row: ParsedRow) -> RowOutcome:
    rec = ProductImportRow.from_parsed(row)
    category_id = _resolve_category(ctx, rec)
    supplier_id = _resolve_supplier(ctx, rec.supplier)

    payload = rec.sparse_fields()
    if category_id is not None:
        payload["category_id"] = category_id
    if supplier_id is not None:
        payload["default_supplier_id"] = supplier_id

    existing = _find_product(ctx, rec.sku)
    if existing is not None:
        ctx.store.update_record("products", existing["id"], payload)
        return RowOutcome.UPDATED
    payload.setdefault("price", 0)
    ctx.store.create_record("products", ctx.scope_id, payload)
    return RowOutcome.CREATED


# stock --------------------------------------------------------------------

def _default_location(ctx: ReconcileContext) -> Any:
    if ctx.default_location_id is _UNSET:
        locations = ctx.store.list_all("locations", ctx.scope_id)
        ctx.default_location_id = locations[0]["id"] if locations else None
    return ctx.default_location_id


def _apply_stock(ctx: ReconcileContext, row: ParsedRow) -> RowOutcome:
    rec = StockImportRow.from_parsed(row)
    if rec.quantity is None:
        raise RowRejected("Cantidad inválida")
    product = _require_product(ctx, rec.sku)

    if rec.location:
        location_id = resolve_by_name(
            ctx.store, "locations", ctx.scope_id, rec.location,
            FailIfMissing(f'Ubicación "{rec.location}" no encontrada'),
        )
    else:
        location_id = _default_location(ctx)
    if location_id is None:
        raise RowRejected("No hay ubicaciones configuradas")

    # absolute set, never a delta
    existing = ctx.store.find_by_natural_key(
        "stock", ctx.scope_id, {"product_id": product["id"], "location_id": location_id}
    )
    if existing is not None:
        ctx.store.update_record("stock", existing["id"], {"quantity": rec.quantity})
        return RowOutcome.UPDATED
    ctx.store.create_record(
        "stock", ctx.scope_id, {"product_id": product["id"], "location_id": location_id, "quantity": rec.quantity}
    )
    return RowOutcome.CREATED


# prices -------------------------------------------------------------------

def _apply_prices(ctx: ReconcileContext, row: ParsedRow) -> RowOutcome:
    rec = PriceImportRow.from_parsed(row)
    product = _require_product(ctx, rec.sku)
    updates = rec.sparse_fields()

    list_price = None
    price_list_id = None
    if rec.price_list:
        price_list_id = resolve_by_name(
            ctx.store, "price_lists", ctx.scope_id, rec.price_list,
            FailIfMissing(f'Lista de precios "{rec.price_list}" no encontrada'),
        )
        # a named list receives the price; the base price stays untouched
        list_price = updates.pop("price", None)

    if not updates and list_price is None:
        raise RowRejected("No hay datos de precio para actualizar")

    if list_price is not None:
        item_key = {"price_list_id": price_list_id, "product_id": product["id"]}
        item = ctx.store.find_by_natural_key("price_list_items", ctx.scope_id, item_key)
        if item is not None:
            ctx.store.update_record("price_list_items", item["id"], {"price": list_price})
        else:
            ctx.store.create_record("price_list_items", ctx.scope_id, {**item_key, "price": list_price})
    if updates:
        ctx.store.update_record("products", product["id"], updates)
    return RowOutcome.UPDATED


# customers / suppliers ----------------------------------------------------

def _apply_party(kind: str, ctx: ReconcileContext, rec: CustomerImportRow | SupplierImportRow) -> RowOutcome:
    existing = None
    if rec.tax_id:
        existing = ctx.store.find_by_natural_key(kind, ctx.scope_id, {"tax_id": rec.tax_id})
    if existing is None:
        existing = ctx.store.find_by_natural_key(kind, ctx.scope_id, {"name": rec.name})

    payload = rec.sparse_fields()
    if existing is not None:
        ctx.store.update_record(kind, existing["id"], payload)
        return RowOutcome.UPDATED
    ctx.store.create_record(kind, ctx.scope_id, payload)
    return RowOutcome.CREATED


def _apply_customer(ctx: ReconcileContext, row: ParsedRow) -> RowOutcome:
    return _apply_party("customers", ctx, CustomerImportRow.from_parsed(row))


def _apply_supplier(ctx: ReconcileContext, row: ParsedRow) -> RowOutcome:
    return _apply_party("suppliers", ctx, SupplierImportRow.from_parsed(row))


# entry points -------------------------------------------------------------

def import_products(rows: Sequence[ParsedRow], scope_id: str, store: ImportStore, *,
                    progress: RowProgressTracker | None = None) -> ImportResult:
    return _run(ReconcileContext(store, scope_id, progress=progress), rows, _apply_product)


def import_stock(rows: Sequence[ParsedRow], scope_id: str, store: ImportStore, *,
                 progress: RowProgressTracker | None = None) -> ImportResult:
    return _run(ReconcileContext(store, scope_id, progress=progress), rows, _apply_stock)


def import_prices(rows: Sequence[ParsedRow], scope_id: str, store: ImportStore, *,
                  progress: RowProgressTracker | None = None) -> ImportResult:
    return _run(ReconcileContext(store, scope_id, progress=progress), rows, _apply_prices)


def import_customers(rows: Sequence[ParsedRow], scope_id: str, store: ImportStore, *,
                     progress: RowProgressTracker | None = None) -> ImportResult:
    return _run(ReconcileContext(store, scope_id, progress=progress), rows, _apply_customer)


def import_suppliers(rows: Sequence[ParsedRow], scope_id: str, store: ImportStore, *,
                     progress: RowProgressTracker | None = None) -> ImportResult:
    return _run(ReconcileContext(store, scope_id, progress=progress), rows, _apply_supplier)


_DISPATCH = {
    EntityType.PRODUCTS: import_products,
    EntityType.STOCK: import_stock,
    EntityType.PRICES: import_prices,
    EntityType.CUSTOMERS: import_customers,
    EntityType.SUPPLIERS: import_suppliers,
}


def reconcile(
    entity_type: EntityType | str,
    rows: Sequence[ParsedRow],
    scope_id: str,
    store: ImportStore,
    *,
    progress: RowProgressTracker | None = None,
) -> ImportResult:
    """Apply parsed rows to the store for one organization.

    Raises:
        UnknownEntityType: before any row is processed
    """
    et = EntityType.parse(entity_type)
    result = _DISPATCH[et](rows, scope_id, store, progress=progress)
    logger.debug(
        "reconciled entity_type=%s created=%d updated=%d failed=%d",
        et.value, result.created, result.updated, result.failed,
    )
    return result
