from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

"""Locale value coercers for spreadsheet cells.

Cells are typed by back-office staff using Argentine conventions:
dot as thousands separator, comma as decimal separator, Spanish yes/no words.
Every function here is total: bad input yields None, never an exception.
"""

__all__ = [
    "SynonymRule",
    "TAX_RATES",
    "normalize_text",
    "parse_enum_by_synonym",
    "parse_locale_boolean",
    "parse_locale_number",
    "parse_product_type",
    "parse_tax_rate",
    "parse_visibility",
]

TAX_RATES: tuple[float, ...] = (0, 2.5, 5, 10.5, 21, 27)
TAX_RATE_TOLERANCE = 0.1

_TRUE_WORDS = frozenset({"si", "sí", "yes", "true", "1", "activo"})
_FALSE_WORDS = frozenset({"no", "false", "0", "inactivo"})

# Leading float prefix, same acceptance as a lenient parseFloat
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True)
class SynonymRule:
    needles: tuple[str, ...]  # Lower-case substrings that select this value
    value: str
    exact: tuple[str, ...] = ()  # Whole-text matches only


VISIBILITY_RULES = (
    SynonymRule(("ambos", "both"), "SALES_AND_PURCHASES"),
    SynonymRule(("venta",), "SALES"),
    SynonymRule(("compra",), "PURCHASES"),
)

PRODUCT_TYPE_RULES = (
    SynonymRule(("servicio",), "SERVICE", exact=("service",)),
    SynonymRule(("combo",), "COMBO"),
)


def _is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, float) and math.isnan(raw):
        return True
    return isinstance(raw, str) and raw == ""


def _as_text(raw: Any) -> str:
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def _parse_float_prefix(text: str) -> float | None:
    m = _FLOAT_PREFIX.match(text.strip())
    if not m:
        return None
    return float(m.group(0))


def normalize_text(text: str) -> str:
    """Strip diacritics (NFD + drop combining marks) for accent-insensitive matching."""
    return _COMBINING_MARKS.sub("", unicodedata.normalize("NFD", text))


def parse_locale_number(raw: Any) -> float | int | None:
    """Parse an Argentine-formatted number ("$ 1.234,56" -> 1234.56).

    Numbers stored as numbers in the workbook are returned unchanged.
    """
    if _is_blank(raw) or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return raw
    cleaned = _WHITESPACE.sub("", str(raw).replace("$", ""))
    cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    return _parse_float_prefix(cleaned)


def parse_locale_boolean(raw: Any) -> bool | None:
    if _is_blank(raw):
        return None
    text = _as_text(raw).strip().lower()
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    return None


def parse_enum_by_synonym(raw: Any, rules: Sequence[SynonymRule], default: str | None = None) -> str | None:
    """Substring-match free text against ordered rules; first match wins.

    Needles match anywhere: "solo compras y algo más" selects the
    "compra" rule. Exact words must be the whole text.
    """
    if _is_blank(raw):
        return None
    text = _as_text(raw).strip().lower()
    if not text:
        return None
    for rule in rules:
        if text in rule.exact or any(needle in text for needle in rule.needles):
            return rule.value
    return default


def parse_visibility(raw: Any) -> str | None:
    return parse_enum_by_synonym(raw, VISIBILITY_RULES)


def parse_product_type(raw: Any) -> str | None:
    # any non-empty text resolves; PRODUCT is the catch-all
    return parse_enum_by_synonym(raw, PRODUCT_TYPE_RULES, default="PRODUCT")


def _nearest_rate(value: float) -> float | None:
    for rate in TAX_RATES:
        if abs(rate - value) < TAX_RATE_TOLERANCE:
            return rate
    return None


def parse_tax_rate(raw: Any) -> float | None:
    """Resolve a VAT rate against the fixed whitelist.

    Values strictly between 0 and 1 are first read as fractions (0.21 -> 21).
    1.5 is not a fraction and is not on the whitelist, so it yields None.
    """
    if _is_blank(raw) or isinstance(raw, bool):
        return None
    text = _as_text(raw).replace("%", "", 1).replace(",", ".", 1).strip()
    num = _parse_float_prefix(text)
    if num is None or math.isnan(num):
        return None
    if 0 < num < 1:
        match = _nearest_rate(num * 100)
        if match is not None:
            return match
    return _nearest_rate(num)
