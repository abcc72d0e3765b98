"""
Shipping Quote Calculator

DataFrame in, DataFrame out. quote_services() takes the services table and
returns one row per service with its zone, billable weight, status and
price for a destination. quote() wraps it into a Quote for presentation.

REQUIRED INPUT
--------------
    snapshot            - Reference tables (services, carrier_zones, rates, countries)
    country_code        - Destination country code (must exist in countries)
    weight_kg           - Actual weight in kg (> 0)
    length/width/height - Package dimensions in cm (0 when unknown)

OUTPUT COLUMNS (quote_services)
-------------------------------
    service_id, service_name, carrier, color, description
    available           - allow-list permits the destination
    zone                - carrier zone for the destination ("" when none)
    uses_actual_weight  - service bills on actual weight only
    billable_weight_kg  - weight used for the rate lookup
    rate_weight_kg      - upper bound of the matched tier (priced lines only)
    price               - price in yen (priced lines only)
    status              - see QuoteStatus
    calculator_version

STATUS PRECEDENCE
-----------------
    1. unavailable              - country_codes allow-list excludes the destination
    2. carrier_not_configured   - service has no carrier
    3. zone_not_configured      - carrier has no zone for the destination
    4. priced / no_rate_for_weight

Priced lines come first, cheapest first (ties keep service order). All other
lines follow in service order.

USAGE
-----
    from rate_engine.calculate_quote import quote
    result = quote(snapshot, "US", weight_kg=2.3, length_cm=40, width_cm=30, height_cm=20)
"""

from dataclasses import dataclass
from enum import Enum

import polars as pl

from .version import VERSION
from .billable_weight import billable_weight, volumetric_weight
from .normalize import (
    boolean_flag_expr,
    carrier_key_expr,
    normalize_country_code,
    normalize_country_code_list,
    text_expr,
)
from .rate_lookup import match_tiers, prepare_rates
from .snapshot import ReferenceSnapshot
from .zones import build_zone_lookup, resolve_zone


class QuoteStatus(str, Enum):
    PRICED = "priced"
    NO_RATE_FOR_WEIGHT = "no_rate_for_weight"
    ZONE_NOT_CONFIGURED = "zone_not_configured"
    CARRIER_NOT_CONFIGURED = "carrier_not_configured"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class LineResult:
    service_id: str
    service_name: str
    carrier: str
    color: str
    description: str
    zone: str
    uses_actual_weight: bool
    billable_weight_kg: float
    status: QuoteStatus
    price: int | None = None
    rate_weight_kg: float | None = None

    @property
    def priced(self) -> bool:
        return self.status == QuoteStatus.PRICED


@dataclass(frozen=True)
class Quote:
    country_code: str
    country_name: str
    actual_weight_kg: float
    volumetric_weight_kg: float
    applied_weight_kg: float
    lines: tuple[LineResult, ...]
    carrier_not_configured: tuple[str, ...] = ()
    zone_not_configured: tuple[str, ...] = ()
    calculator_version: str = VERSION

    @property
    def priced_lines(self) -> tuple[LineResult, ...]:
        return tuple(line for line in self.lines if line.priced)

    @property
    def cheapest(self) -> LineResult | None:
        priced = self.priced_lines
        return priced[0] if priced else None


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def quote(
    snapshot: ReferenceSnapshot,
    country_code: str,
    weight_kg: float,
    length_cm: float = 0,
    width_cm: float = 0,
    height_cm: float = 0,
) -> Quote:
    """
    Quote every service for one parcel.

    Args:
        snapshot: Reference tables
        country_code: Destination country code
        weight_kg: Actual weight in kg
        length_cm, width_cm, height_cm: Dimensions in cm (0 if unknown)

    Returns:
        Quote with one LineResult per service

    Raises:
        ValueError: unknown country code or weight_kg <= 0
    """
    country = snapshot.find_country(country_code)
    if country is None:
        raise ValueError(f"Unknown destination country: {country_code!r}")
    if weight_kg is None or not weight_kg > 0:
        raise ValueError(f"Weight must be greater than 0, got {weight_kg!r}")

    volumetric_kg = volumetric_weight(length_cm, width_cm, height_cm)
    df = quote_services(snapshot, country["code"], weight_kg, volumetric_kg)
    carrier_missing, zone_missing = configuration_gaps(snapshot, country["code"])

    return Quote(
        country_code=country["code"],
        country_name=country["name"],
        actual_weight_kg=weight_kg,
        volumetric_weight_kg=volumetric_kg,
        applied_weight_kg=max(weight_kg, volumetric_kg),
        lines=tuple(_to_line(row) for row in df.iter_rows(named=True)),
        carrier_not_configured=carrier_missing,
        zone_not_configured=zone_missing,
    )


def quote_services(
    snapshot: ReferenceSnapshot,
    country_code: str,
    actual_weight_kg: float,
    volumetric_weight_kg: float = 0.0,
) -> pl.DataFrame:
    """
    Quote pipeline as a DataFrame, one row per service (see module docstring).

    Does not check that the country exists; quote() does.
    """
    country_code = normalize_country_code(country_code)

    df = _prepare_services(snapshot.services(), country_code)
    df = _lookup_zones(df, snapshot.carrier_zones(), country_code)
    df = _add_billable_weight(df, actual_weight_kg, volumetric_weight_kg)
    df = _lookup_rates(df, prepare_rates(snapshot.rates()))
    df = _assign_status(df)
    df = _sort_lines(df)
    df = _stamp_version(df)

    return df


def configuration_gaps(
    snapshot: ReferenceSnapshot,
    country_code: str,
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """
    Services with no carrier, and "carrier:CODE" pairs with no zone.

    Covers every service, available for the destination or not. Each list
    is de-duplicated in service order.
    """
    country_code = normalize_country_code(country_code)
    lookup = build_zone_lookup(snapshot.carrier_zones())

    services = snapshot.services().select(
        text_expr("id").alias("id"),
        text_expr("name").alias("name"),
        carrier_key_expr("carrier").alias("carrier"),
    )

    carrier_missing = {}
    zone_missing = {}
    for service_id, name, carrier in services.iter_rows():
        if not carrier:
            carrier_missing[name or service_id or "(unknown)"] = None
        elif (carrier, country_code) not in lookup:
            zone_missing[f"{carrier}:{country_code}"] = None

    return tuple(carrier_missing), tuple(zone_missing)


# =============================================================================
# PIPELINE STEPS
# =============================================================================

def _prepare_services(services: pl.DataFrame, country_code: str) -> pl.DataFrame:
    """Normalize service columns and evaluate the country allow-list."""
    df = services.with_row_index("_service_order").select(
        "_service_order",
        text_expr("id").alias("service_id"),
        text_expr("name").alias("service_name"),
        carrier_key_expr("carrier").alias("carrier"),
        text_expr("color").alias("color"),
        text_expr("description").alias("description"),
        text_expr("country_codes")
        .map_elements(normalize_country_code_list, return_dtype=pl.List(pl.Utf8))
        .alias("_allowed_codes"),
        (boolean_flag_expr("use_actual_weight") == "1").alias("uses_actual_weight"),
    )

    # An empty allow-list means the service ships everywhere
    return df.with_columns(
        (
            (pl.col("_allowed_codes").list.len() == 0)
            | pl.col("_allowed_codes").list.contains(country_code)
        ).alias("available")
    ).drop("_allowed_codes")


def _lookup_zones(df: pl.DataFrame, carrier_zones: pl.DataFrame, country_code: str) -> pl.DataFrame:
    """Add the carrier's zone for the destination ("" when not mapped)."""
    lookup = build_zone_lookup(carrier_zones)
    return df.with_columns(
        pl.col("carrier")
        .map_elements(
            lambda carrier: resolve_zone({"carrier": carrier}, country_code, lookup),
            return_dtype=pl.Utf8,
        )
        .alias("zone")
    )


def _add_billable_weight(df: pl.DataFrame, actual_kg: float, volumetric_kg: float) -> pl.DataFrame:
    """
    Billable weight per service.

    Services flagged use_actual_weight bill on actual weight; all others on
    the greater of actual and volumetric.
    """
    actual_kg = float(actual_kg)
    volumetric_kg = float(volumetric_kg)
    return df.with_columns(
        pl.col("uses_actual_weight")
        .map_elements(
            lambda use_actual: float(billable_weight(actual_kg, volumetric_kg, use_actual)),
            return_dtype=pl.Float64,
        )
        .alias("billable_weight_kg")
    )


def _lookup_rates(df: pl.DataFrame, rates: pl.DataFrame) -> pl.DataFrame:
    """Match each service to its rate tier (see rate_lookup.match_tiers)."""
    tiers = match_tiers(df, rates, key="_service_order").select(
        "_service_order",
        pl.col("weight_kg").alias("_tier_weight_kg"),
        pl.col("price").alias("_tier_price"),
    )
    return df.join(tiers, on="_service_order", how="left").sort("_service_order")


def _assign_status(df: pl.DataFrame) -> pl.DataFrame:
    """Assign status by precedence; price only on priced lines."""
    df = df.with_columns(
        pl.when(~pl.col("available"))
        .then(pl.lit(QuoteStatus.UNAVAILABLE.value))
        .when(pl.col("carrier") == "")
        .then(pl.lit(QuoteStatus.CARRIER_NOT_CONFIGURED.value))
        .when(pl.col("zone") == "")
        .then(pl.lit(QuoteStatus.ZONE_NOT_CONFIGURED.value))
        .when(pl.col("_tier_price").is_not_null())
        .then(pl.lit(QuoteStatus.PRICED.value))
        .otherwise(pl.lit(QuoteStatus.NO_RATE_FOR_WEIGHT.value))
        .alias("status")
    )

    priced = pl.col("status") == QuoteStatus.PRICED.value
    return df.with_columns(
        pl.when(priced).then(pl.col("_tier_price")).otherwise(None).alias("price"),
        pl.when(priced).then(pl.col("_tier_weight_kg")).otherwise(None).alias("rate_weight_kg"),
    ).drop(["_tier_price", "_tier_weight_kg"])


def _sort_lines(df: pl.DataFrame) -> pl.DataFrame:
    """Priced lines by price then service order; the rest in service order."""
    return (
        df
        .with_columns((pl.col("status") == QuoteStatus.PRICED.value).alias("_priced"))
        .sort(
            ["_priced", "price", "_service_order"],
            descending=[True, False, False],
            nulls_last=True,
        )
        .drop(["_priced", "_service_order"])
    )


def _stamp_version(df: pl.DataFrame) -> pl.DataFrame:
    return df.with_columns(pl.lit(VERSION).alias("calculator_version"))


def _to_line(row: dict) -> LineResult:
    return LineResult(
        service_id=row["service_id"],
        service_name=row["service_name"],
        carrier=row["carrier"],
        color=row["color"],
        description=row["description"],
        zone=row["zone"],
        uses_actual_weight=row["uses_actual_weight"],
        billable_weight_kg=row["billable_weight_kg"],
        status=QuoteStatus(row["status"]),
        price=row["price"],
        rate_weight_kg=row["rate_weight_kg"],
    )


__all__ = [
    "QuoteStatus",
    "LineResult",
    "Quote",
    "quote",
    "quote_services",
    "configuration_gaps",
]
