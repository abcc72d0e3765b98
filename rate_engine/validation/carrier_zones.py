"""
Carrier Zone Validation

Rules, checked in this order (first failing rule is reported):
    1. carrier and country_code are required
    2. carrier + country_code is unique (within the batch, and against
       existing rows when appending)
    3. carrier is used by at least one service
    4. country_code exists in countries

A repeated key is a duplicate even when the zone values differ.
"""

import polars as pl

from ..data.reference.tables import TableKind
from ..normalize import carrier_key_expr, country_code_expr, zone_expr
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

TABLE = TableKind.CARRIER_ZONES


def normalize_carrier_zones(rows: pl.DataFrame) -> pl.DataFrame:
    """Lower-case carriers, upper-case country codes, trim zones."""
    rows = conform_table(TABLE, lower_headers(rows))
    return rows.with_columns(
        carrier_key_expr("carrier").alias("carrier"),
        country_code_expr("country_code").alias("country_code"),
        zone_expr("zone").alias("zone"),
    )


def carrier_zone_keys(rows: pl.DataFrame) -> list[str]:
    """carrier|country_code key per row (rows must be normalized)."""
    return rows.select(
        pl.concat_str([pl.col("carrier"), pl.lit("|"), pl.col("country_code")]).alias("_key")
    ).to_series().to_list()


def _existing_keys(existing_rows: pl.DataFrame | None) -> frozenset[str]:
    if existing_rows is None:
        return frozenset()
    existing = normalize_carrier_zones(existing_rows).filter(
        (pl.col("carrier") != "") & (pl.col("country_code") != "")
    )
    return frozenset(carrier_zone_keys(existing))


def validate_carrier_zones(
    rows: pl.DataFrame,
    snapshot: ReferenceSnapshot,
    existing_rows: pl.DataFrame | None = None,
) -> ValidationResult:
    """
    Validate a carrier zone batch against the snapshot.

    Args:
        rows: Candidate rows (carrier, country_code, zone)
        snapshot: Current reference tables (countries and services are read)
        existing_rows: Current carrier zones; pass only when appending

    Returns:
        Accepted with normalized rows, or Rejected
    """
    missing_columns = check_columns(TABLE, rows)
    if missing_columns is not None:
        return missing_columns

    normalized = normalize_carrier_zones(rows)

    blank = row_numbers(
        normalized.select(
            (pl.col("carrier") == "") | (pl.col("country_code") == "")
        ).to_series()
    )
    if blank:
        return reject(TABLE, ViolationKind.MISSING_FIELD, blank,
                      "carrier and country_code are required (rows)")

    duplicates = duplicate_keys(carrier_zone_keys(normalized), _existing_keys(existing_rows))
    if duplicates:
        return reject(TABLE, ViolationKind.DUPLICATE_KEY, duplicates,
                      "Duplicate carrier,country_code combinations")

    valid_carriers = snapshot.service_carriers()
    unknown_carriers = unique_in_order(
        carrier for carrier in normalized["carrier"] if carrier not in valid_carriers
    )
    if unknown_carriers:
        return reject(TABLE, ViolationKind.UNKNOWN_CARRIER, unknown_carriers,
                      "Unknown carriers (not used by any service)")

    valid_codes = snapshot.country_codes()
    unknown_countries = unique_in_order(
        code for code in normalized["country_code"] if code not in valid_codes
    )
    if unknown_countries:
        return reject(TABLE, ViolationKind.UNKNOWN_COUNTRY, unknown_countries,
                      "Unknown country codes")

    return Accepted(table=TABLE, rows=normalized)
