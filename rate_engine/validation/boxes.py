"""
Box Table Validation

    1. key and label are required (key is lower-cased)
    2. length_cm, width_cm and height_cm must be > 0
    3. key is unique (within the batch, and against existing rows when appending)
"""

import polars as pl

from ..data.reference.tables import TableKind
from ..normalize import decimal_string_expr, integer_string_expr, text_expr
from ..snapshot import ReferenceSnapshot, conform_table
from .results import (
    Accepted,
    ValidationResult,
    ViolationKind,
    check_columns,
    duplicate_keys,
    lower_headers,
    reject,
    row_numbers,
    unique_in_order,
)

TABLE = TableKind.BOXES

DIMENSION_COLUMNS = ["length_cm", "width_cm", "height_cm"]


def normalize_boxes(rows: pl.DataFrame) -> pl.DataFrame:
    rows = conform_table(TABLE, lower_headers(rows))
    return rows.with_columns(
        text_expr("key").str.to_lowercase().alias("key"),
        text_expr("label").alias("label"),
        *[decimal_string_expr(column).alias(column) for column in DIMENSION_COLUMNS],
        text_expr("comment").alias("comment"),
        integer_string_expr("sort").alias("sort"),
    )


def _existing_keys(existing_rows: pl.DataFrame | None) -> frozenset[str]:
    if existing_rows is None:
        return frozenset()
    keys = normalize_boxes(existing_rows)["key"].to_list()
    return frozenset(key for key in keys if key)


def validate_boxes(
    rows: pl.DataFrame,
    snapshot: ReferenceSnapshot,
    existing_rows: pl.DataFrame | None = None,
) -> ValidationResult:
    """Validate a box batch. Boxes reference no other table."""
    missing_columns = check_columns(TABLE, rows)
    if missing_columns is not None:
        return missing_columns

    normalized = normalize_boxes(rows)

    blank = row_numbers(
        normalized.select((pl.col("key") == "") | (pl.col("label") == "")).to_series()
    )
    if blank:
        return reject(TABLE, ViolationKind.MISSING_FIELD, blank,
                      "key and label are required (rows)")

    non_positive = normalized.filter(
        pl.any_horizontal(
            [pl.col(column).cast(pl.Float64, strict=False).fill_null(0) <= 0
             for column in DIMENSION_COLUMNS]
        )
    )
    if not non_positive.is_empty():
        return reject(TABLE, ViolationKind.INVALID_DIMENSION, unique_in_order(non_positive["key"]),
                      "Box dimensions must be greater than 0")

    duplicates = duplicate_keys(normalized["key"].to_list(), _existing_keys(existing_rows))
    if duplicates:
        return reject(TABLE, ViolationKind.DUPLICATE_KEY, duplicates, "Duplicate box keys")

    return Accepted(table=TABLE, rows=normalized)
