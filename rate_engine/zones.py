"""
Zone Resolution

Every carrier prices by its own zones. The carrier_zones table maps
(carrier, country_code) to the zone a carrier uses for that destination:

    fedex,US,E
    dhl,US,5

A service inherits its zones from its carrier; a service without a carrier
has no zones.

The lookup built here is the only zone source. There is no fallback to a
zone stored on the country or to a carrier inferred from a service id.

COVERAGE
--------
missing_carrier_zones() lists the (carrier, country) combinations that have
no zone yet, so an admin can see what a new carrier or country still needs.
fill_missing_carrier_zones() appends placeholder rows for those gaps.
"""

from types import MappingProxyType
from typing import Mapping

import polars as pl

from .data.reference.tables import TableKind
from .normalize import (
    carrier_key_expr,
    country_code_expr,
    normalize_carrier_key,
    normalize_country_code,
    normalize_zone,
    zone_expr,
)
from .snapshot import ReferenceSnapshot, conform_table

ZoneLookup = Mapping[tuple[str, str], str]

DEFAULT_PLACEHOLDER_ZONE = "TODO"


def _normalized_mappings(carrier_zones: pl.DataFrame) -> pl.DataFrame:
    """Normalized carrier zone rows with an empty carrier, code or zone dropped."""
    return (
        conform_table(TableKind.CARRIER_ZONES, carrier_zones)
        .select(
            carrier_key_expr("carrier").alias("carrier"),
            country_code_expr("country_code").alias("country_code"),
            zone_expr("zone").alias("zone"),
        )
        .filter(
            (pl.col("carrier") != "")
            & (pl.col("country_code") != "")
            & (pl.col("zone") != "")
        )
    )


def build_zone_lookup(carrier_zones: pl.DataFrame) -> ZoneLookup:
    """
    Build the (carrier, country_code) -> zone lookup.

    Rows with an empty carrier, country code or zone are skipped. If a key
    repeats, the later row wins.
    """
    lookup = {}
    for carrier, country_code, zone in _normalized_mappings(carrier_zones).iter_rows():
        lookup[(carrier, country_code)] = zone
    return MappingProxyType(lookup)


def resolve_zone(service: Mapping[str, str], country_code: str, lookup: ZoneLookup) -> str:
    """
    Zone for a service (any mapping with a "carrier" entry) and a destination.

    Returns "" when the service has no carrier or its carrier has no zone
    for the country.
    """
    carrier = normalize_carrier_key(service.get("carrier"))
    if not carrier:
        return ""
    return lookup.get((carrier, normalize_country_code(country_code)), "")


# =============================================================================
# COVERAGE
# =============================================================================

def missing_carrier_zones(snapshot: ReferenceSnapshot) -> list[tuple[str, str]]:
    """
    (carrier, country_code) pairs with no zone, sorted.

    Considers every carrier used by a service against every country.
    """
    mapped = set(build_zone_lookup(snapshot.carrier_zones()))
    return sorted(
        (carrier, code)
        for carrier in snapshot.service_carriers()
        for code in snapshot.country_codes()
        if (carrier, code) not in mapped
    )


def fill_missing_carrier_zones(
    snapshot: ReferenceSnapshot,
    placeholder: str = DEFAULT_PLACEHOLDER_ZONE,
) -> pl.DataFrame:
    """
    Carrier zone table with a placeholder row for every missing pair.

    Existing rows are kept as they are. A pair that already has a row with
    an empty zone gets no placeholder (the row is still reported by
    missing_carrier_zones until its zone is filled in).
    """
    existing = snapshot.carrier_zones()
    present = set(
        existing.select(
            carrier_key_expr("carrier"), country_code_expr("country_code")
        ).iter_rows()
    )
    gaps = [pair for pair in missing_carrier_zones(snapshot) if pair not in present]
    if not gaps:
        return existing

    placeholder = normalize_zone(placeholder)
    additions = pl.DataFrame(
        {
            "carrier": [carrier for carrier, _ in gaps],
            "country_code": [code for _, code in gaps],
            "zone": [placeholder] * len(gaps),
        },
        schema={"carrier": pl.Utf8, "country_code": pl.Utf8, "zone": pl.Utf8},
    )
    return pl.concat([existing, additions], how="vertical")


def countries_for_zone(snapshot: ReferenceSnapshot, carrier: str, zone: str) -> list[str]:
    """Sorted unique country codes a carrier maps to the given zone."""
    carrier = normalize_carrier_key(carrier)
    zone = normalize_zone(zone)
    if not carrier or not zone:
        return []
    matches = _normalized_mappings(snapshot.carrier_zones()).filter(
        (pl.col("carrier") == carrier) & (pl.col("zone") == zone)
    )
    return sorted(set(matches["country_code"].to_list()))


__all__ = [
    "ZoneLookup",
    "DEFAULT_PLACEHOLDER_ZONE",
    "build_zone_lookup",
    "resolve_zone",
    "missing_carrier_zones",
    "fill_missing_carrier_zones",
    "countries_for_zone",
]
