"""
Integrity Validation

Content validation for the tables that reference other tables:

    carrier_zones   carrier -> services, country_code -> countries
    rates           service -> services, (carrier, zone) -> carrier_zones
    boxes           self-contained (required fields, dimensions, unique keys)

USAGE
-----
    from rate_engine.validation import validate

    result = validate(TableKind.RATES, rows, snapshot)
    if not result.ok:
        print(result.kind, result.keys)
"""

import polars as pl

from ..data.reference.tables import TableKind
from ..snapshot import ReferenceSnapshot
from .boxes import normalize_boxes, validate_boxes
from .carrier_zones import normalize_carrier_zones, validate_carrier_zones
from .rates import normalize_rates, validate_rates
from .results import (
    PRIORITY,
    Accepted,
    Rejected,
    ValidationResult,
    ViolationKind,
    check_columns,
)

VALIDATORS = {
    TableKind.CARRIER_ZONES: validate_carrier_zones,
    TableKind.RATES: validate_rates,
    TableKind.BOXES: validate_boxes,
}

NORMALIZERS = {
    TableKind.CARRIER_ZONES: normalize_carrier_zones,
    TableKind.RATES: normalize_rates,
    TableKind.BOXES: normalize_boxes,
}


def validate(
    kind: TableKind | str,
    rows: pl.DataFrame,
    snapshot: ReferenceSnapshot,
    existing_rows: pl.DataFrame | None = None,
) -> ValidationResult:
    """
    Validate a candidate batch for one table.

    Args:
        kind: Table being written
        rows: Candidate rows
        snapshot: Reference tables the batch is checked against
        existing_rows: Rows already stored; supplied only in append mode,
            their keys count towards duplicate detection

    Returns:
        Accepted(rows) with normalized rows, or Rejected(kind, keys, message)

    Raises:
        ValueError: table has no content validation
    """
    kind = TableKind(kind)
    validator = VALIDATORS.get(kind)
    if validator is None:
        raise ValueError(f"No content validation for table: {kind.value}")
    return validator(rows, snapshot, existing_rows)


__all__ = [
    "validate",
    "VALIDATORS",
    "NORMALIZERS",
    "PRIORITY",
    "Accepted",
    "Rejected",
    "ValidationResult",
    "ViolationKind",
    "check_columns",
]
