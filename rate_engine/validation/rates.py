"""
Rate Table Validation

Rules, checked in this order (first failing rule is reported):
    1. service, zone, weight and price are required
       (a weight or price that canonicalizes to "0" counts as empty)
    2. service + zone + weight is unique (within the batch, and against
       existing rows when appending)
    3. service is a Service name
    4. (carrier of service, zone) is a real carrier zone mapping

A row whose service is unknown is not checked for its zone. Unknown zones
are reported as "carrier|zone"; when the service has no carrier the carrier
part is empty ("|E").
"""

import polars as pl

from ..data.reference.tables import TableKind
from ..normalize import (
    carrier_key_expr,
    country_code_expr,
    decimal_string_expr,
    integer_string_expr,
    text_expr,
    zone_expr,
)
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

TABLE = TableKind.RATES


def normalize_rates(rows: pl.DataFrame) -> pl.DataFrame:
    """Trim service and zone; canonical weight (decimal) and price (integer)."""
    rows = conform_table(TABLE, lower_headers(rows))
    return rows.with_columns(
        text_expr("service").alias("service"),
        zone_expr("zone").alias("zone"),
        decimal_string_expr("weight").alias("weight"),
        integer_string_expr("price").alias("price"),
    )


def rate_keys(rows: pl.DataFrame) -> list[str]:
    """service|zone|weight key per row (rows must be normalized)."""
    return rows.select(
        pl.concat_str(
            [pl.col("service"), pl.col("zone"), pl.col("weight")], separator="|"
        ).alias("_key")
    ).to_series().to_list()


def carrier_zone_pairs(snapshot: ReferenceSnapshot) -> frozenset[str]:
    """
    "carrier|zone" pairs a rate may reference.

    Only mappings with a non-empty carrier, country code and zone count, and
    the country code must exist in countries.
    """
    valid_codes = list(snapshot.country_codes())
    mappings = snapshot.carrier_zones().select(
        carrier_key_expr("carrier").alias("carrier"),
        country_code_expr("country_code").alias("country_code"),
        zone_expr("zone").alias("zone"),
    ).filter(
        (pl.col("carrier") != "")
        & (pl.col("zone") != "")
        & pl.col("country_code").is_in(valid_codes)
    )
    pairs = mappings.select(
        pl.concat_str([pl.col("carrier"), pl.col("zone")], separator="|")
    ).to_series()
    return frozenset(pairs.to_list())


def _existing_keys(existing_rows: pl.DataFrame | None) -> frozenset[str]:
    if existing_rows is None:
        return frozenset()
    existing = normalize_rates(existing_rows).filter(
        (pl.col("service") != "") & (pl.col("zone") != "") & (pl.col("weight") != "0")
    )
    return frozenset(rate_keys(existing))


def validate_rates(
    rows: pl.DataFrame,
    snapshot: ReferenceSnapshot,
    existing_rows: pl.DataFrame | None = None,
) -> ValidationResult:
    """
    Validate a rate table batch against the snapshot.

    Args:
        rows: Candidate rows (service, zone, weight, price)
        snapshot: Current reference tables (services, carrier zones and
            countries are read)
        existing_rows: Current rates; pass only when appending

    Returns:
        Accepted with normalized rows, or Rejected
    """
    missing_columns = check_columns(TABLE, rows)
    if missing_columns is not None:
        return missing_columns

    normalized = normalize_rates(rows)

    blank = row_numbers(
        normalized.select(
            (pl.col("service") == "")
            | (pl.col("zone") == "")
            | (pl.col("weight") == "0")
            | (pl.col("price") == "0")
        ).to_series()
    )
    if blank:
        return reject(TABLE, ViolationKind.MISSING_FIELD, blank,
                      "service, zone, weight and price are required (rows)")

    duplicates = duplicate_keys(rate_keys(normalized), _existing_keys(existing_rows))
    if duplicates:
        return reject(TABLE, ViolationKind.DUPLICATE_KEY, duplicates,
                      "Duplicate service,zone,weight combinations")

    carrier_by_service = snapshot.service_carrier_by_name()
    unknown_services = unique_in_order(
        service for service in normalized["service"] if service not in carrier_by_service
    )
    if unknown_services:
        return reject(TABLE, ViolationKind.UNKNOWN_SERVICE, unknown_services,
                      "Unknown services (not in the services table)")

    valid_pairs = carrier_zone_pairs(snapshot)
    unknown_zones = []
    for service, zone in normalized.select("service", "zone").iter_rows():
        carrier = carrier_by_service[service]
        pair = f"{carrier}|{zone}"
        if not carrier or pair not in valid_pairs:
            unknown_zones.append(pair)
    unknown_zones = unique_in_order(unknown_zones)
    if unknown_zones:
        return reject(TABLE, ViolationKind.UNKNOWN_ZONE, unknown_zones,
                      "Unknown zones (no carrier zone mapping)")

    return Accepted(table=TABLE, rows=normalized)
