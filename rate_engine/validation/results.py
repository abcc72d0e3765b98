"""
Validation Results

A validator never raises for bad data. It returns either:

    Accepted(rows)                     - normalized rows, ready to commit
    Rejected(kind, keys, message)      - one violation kind, every offending key

Violation kinds are checked in priority order (see PRIORITY); a batch is
reported under the first kind it violates only.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Collection, Iterable

import polars as pl

from ..data.reference.tables import TableKind, REQUIRED_COLUMNS


class ViolationKind(str, Enum):
    DUPLICATE_COLUMN = "DuplicateColumn"
    MISSING_COLUMN = "MissingColumn"
    MISSING_FIELD = "MissingField"
    INVALID_DIMENSION = "InvalidDimension"
    DUPLICATE_KEY = "DuplicateKey"
    UNKNOWN_SERVICE = "UnknownService"
    UNKNOWN_CARRIER = "UnknownCarrier"
    UNKNOWN_ZONE = "UnknownZone"
    UNKNOWN_COUNTRY = "UnknownCountry"


# Highest priority first
PRIORITY = [
    ViolationKind.DUPLICATE_COLUMN,
    ViolationKind.MISSING_COLUMN,
    ViolationKind.MISSING_FIELD,
    ViolationKind.INVALID_DIMENSION,
    ViolationKind.DUPLICATE_KEY,
    ViolationKind.UNKNOWN_SERVICE,
    ViolationKind.UNKNOWN_CARRIER,
    ViolationKind.UNKNOWN_ZONE,
    ViolationKind.UNKNOWN_COUNTRY,
]


@dataclass(frozen=True)
class Accepted:
    table: TableKind
    rows: pl.DataFrame

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    table: TableKind
    kind: ViolationKind
    keys: tuple[str, ...]
    message: str

    @property
    def ok(self) -> bool:
        return False


ValidationResult = Accepted | Rejected


def reject(table: TableKind, kind: ViolationKind, keys: Iterable[str], description: str) -> Rejected:
    """Build a rejection whose message lists every offending key."""
    keys = tuple(keys)
    message = f"{description}: {', '.join(keys)}" if keys else description
    return Rejected(table=table, kind=kind, keys=keys, message=message)


# =============================================================================
# HELPERS
# =============================================================================

def check_columns(table: TableKind, rows: pl.DataFrame) -> Rejected | None:
    """
    Reject a batch whose headers cannot be resolved.

    Header names are matched trimmed and lower-cased, so "Carrier" and
    " carrier" are the same column. Headers that collide after that are a
    DuplicateColumn; required columns that are absent a MissingColumn.
    """
    by_name = {}
    for column in rows.columns:
        by_name.setdefault(normalize_header(column), []).append(column)
    clashing = [column for columns in by_name.values() if len(columns) > 1 for column in columns]
    if clashing:
        return reject(table, ViolationKind.DUPLICATE_COLUMN, clashing,
                      "Columns repeated (header names ignore case and spaces)")

    present = set(by_name)
    missing = [column for column in REQUIRED_COLUMNS[table] if column not in present]
    if missing:
        return reject(table, ViolationKind.MISSING_COLUMN, missing, "Missing required columns")
    return None


def normalize_header(column: str) -> str:
    return column.strip().lower()


def lower_headers(rows: pl.DataFrame) -> pl.DataFrame:
    """Headers trimmed and lower-cased (check_columns must have passed)."""
    return rows.rename({column: normalize_header(column) for column in rows.columns})


def unique_in_order(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def duplicate_keys(keys: Iterable[str], existing: Collection[str] = frozenset()) -> tuple[str, ...]:
    """
    Keys that repeat within the batch or collide with existing keys.

    The first occurrence of a key is not a violation; every key that repeats
    is reported once, in order of its first offending occurrence.
    """
    seen = set()
    offending = {}
    for key in keys:
        if key in seen or key in existing:
            offending[key] = None
        seen.add(key)
    return tuple(offending)


def row_numbers(mask: pl.Series) -> tuple[str, ...]:
    """1-based row numbers where mask is True."""
    return tuple(str(index + 1) for index, flagged in enumerate(mask.to_list()) if flagged)


__all__ = [
    "ViolationKind",
    "PRIORITY",
    "Accepted",
    "Rejected",
    "ValidationResult",
    "reject",
    "check_columns",
    "normalize_header",
    "lower_headers",
    "unique_in_order",
    "duplicate_keys",
    "row_numbers",
]
