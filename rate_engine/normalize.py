"""
Normalization

Canonical forms for the free-text fields stored in the reference tables.

Every table cell is stored as text. These functions decide how two cells
compare: carrier keys are lower-case, country codes upper-case, zones are
only trimmed (zones can be letters or numbers depending on the carrier),
weights and prices are re-rendered from their numeric value so that "5",
"5.0" and "5.00" key identically.

NUMERIC PARSING
---------------
Numbers are read from the leading numeric prefix of the text ("5kg" -> 5).
Anything unparsable, empty or non-finite becomes 0. This coercion is part
of the contract: validators treat a canonical "0" as an empty field.

All normalizers are idempotent: normalize(normalize(x)) == normalize(x).
"""

import math
import re

import polars as pl


_NUMERIC_PREFIX_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_CODE_LIST_SPLIT_RE = re.compile(r"[,|\s]+")

TRUTHY_FLAGS = frozenset({"1", "true", "yes", "on"})


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


# =============================================================================
# KEYS AND CODES
# =============================================================================

def normalize_carrier_key(value) -> str:
    """Carrier key: trimmed, lower-case. Empty is allowed (caller decides)."""
    return _text(value).lower()


def normalize_country_code(value) -> str:
    """Country code: trimmed, upper-case."""
    return _text(value).upper()


def normalize_zone(value) -> str:
    """Zone label: trimmed only, case preserved."""
    return _text(value)


def normalize_country_code_list(value) -> list[str]:
    """
    Split a country allow-list into codes.

    Accepts comma, pipe or whitespace separators: "US,ca | MX" -> ["US", "CA", "MX"].
    Codes are upper-cased, empties dropped, duplicates removed keeping the
    first occurrence.
    """
    codes: list[str] = []
    for part in _CODE_LIST_SPLIT_RE.split(_text(value)):
        code = part.strip().upper()
        if code and code not in codes:
            codes.append(code)
    return codes


def normalize_boolean_flag(value) -> bool:
    """True iff the value is one of 1/true/yes/on (case-insensitive)."""
    return _text(value).lower() in TRUTHY_FLAGS


# =============================================================================
# NUMBERS
# =============================================================================

def parse_decimal(value) -> float:
    """Parse the leading decimal prefix of a value; 0.0 when there is none."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMERIC_PREFIX_RE.match(_text(value))
        if not match:
            return 0.0
        number = float(match.group(0))
    if not math.isfinite(number):
        return 0.0
    return number


def parse_integer(value) -> int:
    """Parse a value as an integer, truncating toward zero; 0 when unparsable."""
    return int(parse_decimal(value))


def format_decimal(number: float) -> str:
    """Render a float canonically: "5" for 5.0, "5.5" for 5.50."""
    if number == 0:
        return "0"
    if number.is_integer() and abs(number) < 1e15:
        return str(int(number))
    return repr(number)


def normalize_decimal_string(value) -> str:
    """Canonical decimal string used for weights ("5.00" -> "5")."""
    return format_decimal(parse_decimal(value))


def normalize_integer_string(value) -> str:
    """Canonical integer string used for prices ("1200.9" -> "1200")."""
    return str(parse_integer(value))


def is_blank_number(value: str) -> bool:
    """A canonical numeric string counts as empty when it is "" or "0"."""
    return value in ("", "0")


# =============================================================================
# POLARS EXPRESSIONS
# =============================================================================

def text_expr(column: str) -> pl.Expr:
    """Column as trimmed text, nulls as empty strings."""
    return pl.col(column).cast(pl.Utf8).fill_null("").str.strip_chars()


def carrier_key_expr(column: str = "carrier") -> pl.Expr:
    return text_expr(column).str.to_lowercase()


def country_code_expr(column: str = "country_code") -> pl.Expr:
    return text_expr(column).str.to_uppercase()


def zone_expr(column: str = "zone") -> pl.Expr:
    return text_expr(column)


def decimal_string_expr(column: str) -> pl.Expr:
    return text_expr(column).map_elements(normalize_decimal_string, return_dtype=pl.Utf8)


def integer_string_expr(column: str) -> pl.Expr:
    return text_expr(column).map_elements(normalize_integer_string, return_dtype=pl.Utf8)


def boolean_flag_expr(column: str) -> pl.Expr:
    """Flag column rendered as "1"/"0"."""
    return (
        pl.when(text_expr(column).str.to_lowercase().is_in(list(TRUTHY_FLAGS)))
        .then(pl.lit("1"))
        .otherwise(pl.lit("0"))
    )


__all__ = [
    "TRUTHY_FLAGS",
    "normalize_carrier_key",
    "normalize_country_code",
    "normalize_zone",
    "normalize_country_code_list",
    "normalize_boolean_flag",
    "parse_decimal",
    "parse_integer",
    "format_decimal",
    "normalize_decimal_string",
    "normalize_integer_string",
    "is_blank_number",
    "text_expr",
    "carrier_key_expr",
    "country_code_expr",
    "zone_expr",
    "decimal_string_expr",
    "integer_string_expr",
    "boolean_flag_expr",
]
