from __future__ import annotations

import copy
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

"""Record store collaborator used by the reconciliation engine.

The engine only needs four operations per record kind, all scoped by the
organization (scope_id). Each call is its own unit of work; there is no
cross-row transaction.

Key matching semantics for find_by_natural_key():
- "name" compares case-insensitively (trimmed input, exact otherwise)
- a None value matches NULL / missing
- every other column compares by equality
"""

__all__ = [
    "KINDS",
    "ImportStore",
    "InMemoryStore",
    "Record",
    "StoreError",
]

Record = dict[str, Any]

KINDS = frozenset({
    "categories",
    "suppliers",
    "locations",
    "products",
    "customers",
    "stock",
    "price_lists",
    "price_list_items",
})

# kinds whose rows carry organization_id directly
SCOPED_KINDS = frozenset(KINDS - {"stock", "price_list_items"})


class StoreError(Exception):
    """Raised for any failure of the underlying store (constraint, driver, I/O)."""


def _check_kind(kind: str) -> None:
    if kind not in KINDS:
        raise StoreError(f"unknown record kind: {kind}")


class ImportStore(ABC):
    @abstractmethod
    def list_all(self, kind: str, scope_id: str) -> list[Record]:
        """All records of a kind in scope, in insertion order."""

    @abstractmethod
    def find_by_natural_key(self, kind: str, scope_id: str, key: Mapping[str, Any]) -> Record | None:
        """First record in scope matching every column of key, or None."""

    @abstractmethod
    def create_record(self, kind: str, scope_id: str, values: Mapping[str, Any]) -> Record:
        """Insert a record and return it including its generated id."""

    @abstractmethod
    def update_record(self, kind: str, record_id: Any, values: Mapping[str, Any]) -> Record:
        """Apply values to an existing record and return the updated record."""


def _matches(record: Record, key: Mapping[str, Any]) -> bool:
    for col, expected in key.items():
        actual = record.get(col)
        if expected is None:
            if actual is not None:
                return False
        elif col == "name":
            if not isinstance(actual, str) or actual.lower() != str(expected).strip().lower():
                return False
        elif actual != expected:
            return False
    return True


class InMemoryStore(ImportStore):
    """Dict-backed store with the unique constraints the import relies on.

    Used by tests and by the CLI when no database connection is configured.
    Returned records are copies; mutating them does not touch the store.
    """

    # kind -> columns that must be unique within a scope (None values exempt)
    UNIQUE_KEYS: dict[str, tuple[tuple[str, ...], ...]] = {
        "products": (("sku",),),
        "customers": (("tax_id",),),
        "suppliers": (("tax_id",),),
        "stock": (("product_id", "location_id"),),
        "price_list_items": (("price_list_id", "product_id"),),
    }

    def __init__(self) -> None:
        self._tables: dict[str, list[Record]] = {k: [] for k in KINDS}

    def _scoped(self, kind: str, scope_id: str) -> list[Record]:
        rows = self._tables[kind]
        if kind in SCOPED_KINDS:
            return [r for r in rows if r.get("organization_id") == scope_id]
        return list(rows)

    def _check_unique(self, kind: str, candidate: Record, exclude_id: Any = None) -> None:
        for cols in self.UNIQUE_KEYS.get(kind, ()):
            values = tuple(candidate.get(c) for c in cols)
            if any(v is None for v in values):
                continue
            for r in self._tables[kind]:
                if r["id"] == exclude_id:
                    continue
                if kind in SCOPED_KINDS and r.get("organization_id") != candidate.get("organization_id"):
                    continue
                if tuple(r.get(c) for c in cols) == values:
                    raise StoreError(
                        f'duplicate key value violates unique constraint "{kind}_{"_".join(cols)}_key"'
                    )

    def list_all(self, kind: str, scope_id: str) -> list[Record]:
        _check_kind(kind)
        return [copy.deepcopy(r) for r in self._scoped(kind, scope_id)]

    def find_by_natural_key(self, kind: str, scope_id: str, key: Mapping[str, Any]) -> Record | None:
        _check_kind(kind)
        for r in self._scoped(kind, scope_id):
            if _matches(r, key):
                return copy.deepcopy(r)
        return None

    def create_record(self, kind: str, scope_id: str, values: Mapping[str, Any]) -> Record:
        _check_kind(kind)
        record: Record = dict(values)
        record["id"] = str(uuid.uuid4())
        if kind in SCOPED_KINDS:
            record["organization_id"] = scope_id
        self._check_unique(kind, record)
        self._tables[kind].append(record)
        return copy.deepcopy(record)

    def update_record(self, kind: str, record_id: Any, values: Mapping[str, Any]) -> Record:
        _check_kind(kind)
        for r in self._tables[kind]:
            if r["id"] == record_id:
                merged = {**r, **values, "id": r["id"]}
                self._check_unique(kind, merged, exclude_id=record_id)
                r.update(merged)
                return copy.deepcopy(r)
        raise StoreError(f"{kind} record not found: {record_id}")

    def get(self, kind: str, record_id: Any) -> Record | None:
        """Direct lookup by id (test and inspection helper)."""
        for r in self._tables[kind]:
            if r["id"] == record_id:
                return copy.deepcopy(r)
        return None

    def count(self, kind: str) -> int:
        return len(self._tables[kind])
