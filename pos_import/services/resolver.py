from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from ..db.store import ImportStore, Record
from ..excel.coercion import normalize_text

"""Name resolution for lookup columns (category, supplier, location, price list).

Two passes, always in this order:
1. store lookup, case-insensitive exact name within the scope (+ filters)
2. full scan of the scope comparing accent-stripped, lower-cased names

When both miss, a terminal policy decides: create the record, fail the row,
or fall back to a default value.
"""

__all__ = [
    "CreateIfMissing",
    "DefaultIfMissing",
    "FailIfMissing",
    "MissingPolicy",
    "ResolutionError",
    "resolve_by_name",
]

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """A required lookup could not be resolved; message is user-facing."""


@dataclass(frozen=True)
class CreateIfMissing:
    values: Mapping[str, Any] = field(default_factory=dict)  # Extra fields for the new record


@dataclass(frozen=True)
class FailIfMissing:
    message: str


@dataclass(frozen=True)
class DefaultIfMissing:
    value: Any = None


MissingPolicy = Union[CreateIfMissing, FailIfMissing, DefaultIfMissing]


def _comparison_key(name: str) -> str:
    return normalize_text(name.strip().lower())


def _filters_match(record: Record, filters: Mapping[str, Any]) -> bool:
    return all(record.get(col) == value for col, value in filters.items())


def resolve_by_name(
    store: ImportStore,
    kind: str,
    scope_id: str,
    name: str,
    policy: MissingPolicy,
    filters: Mapping[str, Any] | None = None,
) -> Any:
    """Return the id of the record named `name`, applying `policy` on a miss.

    filters narrow both passes (e.g. {"parent_id": None} for top-level
    categories). DefaultIfMissing returns its value instead of an id.

    Raises:
        ResolutionError: FailIfMissing policy and no match
        StoreError: the store failed during lookup or create
    """
    filters = dict(filters or {})
    clean = name.strip()

    existing = store.find_by_natural_key(kind, scope_id, {"name": clean, **filters})
    if existing is not None:
        return existing["id"]

    wanted = _comparison_key(clean)
    for record in store.list_all(kind, scope_id):
        candidate = record.get("name")
        if isinstance(candidate, str) and _comparison_key(candidate) == wanted and _filters_match(record, filters):
            logger.debug("accent-insensitive match kind=%s input=%r record=%r", kind, clean, candidate)
            return record["id"]

    if isinstance(policy, CreateIfMissing):
        created = store.create_record(kind, scope_id, {"name": clean, **filters, **policy.values})
        logger.debug("created kind=%s name=%r id=%s", kind, clean, created["id"])
        return created["id"]
    if isinstance(policy, FailIfMissing):
        raise ResolutionError(policy.message)
    return policy.value
