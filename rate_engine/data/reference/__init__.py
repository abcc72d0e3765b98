"""
Reference Data

Static configuration and the sample reference tables (CSV) shipped with the
package.
"""

from .billable_weight import DIM_DIVISOR, WEIGHT_STEP_KG
from .tables import (
    TableKind,
    COLUMNS,
    REQUIRED_COLUMNS,
    KEY_COLUMNS,
    FILE_NAMES,
    UPSERT_TABLES,
    VALIDATED_TABLES,
    schema,
    empty_table,
)

__all__ = [
    "DIM_DIVISOR",
    "WEIGHT_STEP_KG",
    "TableKind",
    "COLUMNS",
    "REQUIRED_COLUMNS",
    "KEY_COLUMNS",
    "FILE_NAMES",
    "UPSERT_TABLES",
    "VALIDATED_TABLES",
    "schema",
    "empty_table",
]
