"""
Rate Lookup

Rate tables are tiered: each row's weight is the UPPER bound (inclusive)
of the tier it prices.

    service                        zone  weight  price
    FedEx International Priority   E     0.5     3650
    FedEx International Priority   E     1       4300
    FedEx International Priority   E     1.5     4950

A 0.7 kg parcel falls in the 1 kg tier (4300). The tier is the smallest
weight >= the billable weight for the service and zone. Above the heaviest
tier there is no rate.
"""

from dataclasses import dataclass

import polars as pl

from .data.reference.tables import TableKind
from .normalize import (
    normalize_zone,
    parse_decimal,
    parse_integer,
    text_expr,
    zone_expr,
)
from .snapshot import conform_table


@dataclass(frozen=True)
class RateEntry:
    service: str
    zone: str
    weight_kg: float
    price: int


def prepare_rates(rates: pl.DataFrame) -> pl.DataFrame:
    """
    Typed rate table, ready for joining.

    Returns:
        DataFrame with columns:
            - service: Service name (trimmed)
            - zone: Carrier zone (trimmed)
            - weight_kg: Tier upper bound (Float64)
            - price: Price in yen (Int64)
    """
    return conform_table(TableKind.RATES, rates).select(
        text_expr("service").alias("service"),
        zone_expr("zone").alias("zone"),
        text_expr("weight").map_elements(parse_decimal, return_dtype=pl.Float64).alias("weight_kg"),
        text_expr("price").map_elements(parse_integer, return_dtype=pl.Int64).alias("price"),
    )


def match_tiers(requests: pl.DataFrame, rates: pl.DataFrame, key: str) -> pl.DataFrame:
    """
    Rate tier for each request row.

    Args:
        requests: One row per lookup with columns key, service_name, zone
            and billable_weight_kg (service_name and zone normalized)
        rates: Rate table prepared by prepare_rates()
        key: Column identifying a request

    Returns:
        DataFrame with columns key, service, zone, weight_kg, price. Requests
        without a tier (blank service or zone, no rate heavy enough) have no
        row. Equal tier weights keep rate table order.
    """
    rates = rates.with_row_index("_rate_order")

    return (
        requests
        .select(key, "service_name", "zone", "billable_weight_kg")
        .filter((pl.col("service_name") != "") & (pl.col("zone") != ""))
        .join(rates, left_on=["service_name", "zone"], right_on=["service", "zone"], how="inner")
        .filter(pl.col("billable_weight_kg") <= pl.col("weight_kg"))
        .sort([key, "weight_kg", "_rate_order"])
        .unique(subset=key, keep="first", maintain_order=True)
        .select(
            key,
            pl.col("service_name").alias("service"),
            "zone",
            "weight_kg",
            "price",
        )
    )


def find_rate(
    rates: pl.DataFrame,
    service_name: str,
    zone: str,
    billable_weight_kg: float,
) -> RateEntry | None:
    """
    Find the rate tier for a service, zone and billable weight.

    Args:
        rates: Rate table, raw (service, zone, weight, price) or already
            prepared by prepare_rates()
        service_name: Service name as used in the rate table
        zone: Carrier zone
        billable_weight_kg: Weight to price

    Returns:
        The tier with the smallest weight >= billable_weight_kg, or None.
        Rows with equal weights keep table order; the first one wins.
    """
    if "weight_kg" not in rates.columns:
        rates = prepare_rates(rates)

    request = pl.DataFrame(
        {
            "_request": [0],
            "service_name": [str(service_name or "").strip()],
            "zone": [normalize_zone(zone)],
            "billable_weight_kg": [float(billable_weight_kg)],
        },
        schema={
            "_request": pl.Int64,
            "service_name": pl.Utf8,
            "zone": pl.Utf8,
            "billable_weight_kg": pl.Float64,
        },
    )
    tiers = match_tiers(request, rates, key="_request")
    if tiers.is_empty():
        return None

    row = tiers.row(0, named=True)
    return RateEntry(
        service=row["service"],
        zone=row["zone"],
        weight_kg=row["weight_kg"],
        price=row["price"],
    )


__all__ = [
    "RateEntry",
    "prepare_rates",
    "match_tiers",
    "find_rate",
]
