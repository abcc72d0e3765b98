"""
Reference Snapshot

Immutable, in-memory view of the reference tables for one operation.

A snapshot is built from storage at the start of a validation or quote and
never mutated afterwards. replace_table() returns a new snapshot; the
original stays untouched.

USAGE
-----
    snapshot = ReferenceSnapshot.from_frames({TableKind.RATES: rates_df, ...})
    snapshot.rates()                     # table as stored (text columns)
    snapshot.settings["title"]           # read-only mapping
    snapshot = snapshot.replace_table(TableKind.RATES, new_rates)
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

import polars as pl

from .data.reference.tables import TableKind, COLUMNS, empty_table
from .normalize import (
    normalize_country_code,
    carrier_key_expr,
    country_code_expr,
    text_expr,
)


def conform_table(kind: TableKind, df: pl.DataFrame | None) -> pl.DataFrame:
    """
    Shape a frame to a table's columns: fixed order, text dtype.

    Missing columns are added as empty strings, extra columns dropped and
    nulls replaced with "". Cell values are otherwise left as given.
    """
    if df is None:
        return empty_table(kind)

    missing = [
        pl.lit("", dtype=pl.Utf8).alias(column)
        for column in COLUMNS[kind]
        if column not in df.columns
    ]
    if missing:
        df = df.with_columns(missing)
    return df.select([pl.col(column).cast(pl.Utf8).fill_null("") for column in COLUMNS[kind]])


@dataclass(frozen=True)
class ReferenceSnapshot:
    """Read-only set of reference tables, keyed by TableKind."""

    tables: Mapping[TableKind, pl.DataFrame] = field(default_factory=dict)

    def __post_init__(self):
        conformed = {kind: conform_table(kind, self.tables.get(kind)) for kind in TableKind}
        object.__setattr__(self, "tables", MappingProxyType(conformed))

    @classmethod
    def from_frames(cls, frames: Mapping[TableKind, pl.DataFrame]) -> "ReferenceSnapshot":
        return cls(tables=dict(frames))

    # -------------------------------------------------------------------------
    # ACCESSORS
    # -------------------------------------------------------------------------

    def table(self, kind: TableKind) -> pl.DataFrame:
        return self.tables[TableKind(kind)]

    def countries(self) -> pl.DataFrame:
        return self.tables[TableKind.COUNTRIES]

    def services(self) -> pl.DataFrame:
        return self.tables[TableKind.SERVICES]

    def carrier_zones(self) -> pl.DataFrame:
        return self.tables[TableKind.CARRIER_ZONES]

    def rates(self) -> pl.DataFrame:
        return self.tables[TableKind.RATES]

    def boxes(self) -> pl.DataFrame:
        return self.tables[TableKind.BOXES]

    @property
    def settings(self) -> Mapping[str, str]:
        """Settings as key -> value. Later rows win on repeated keys."""
        values = {}
        for row in self.tables[TableKind.SETTINGS].iter_rows(named=True):
            key = row["key"].strip()
            if key:
                values[key] = row["value"]
        return MappingProxyType(values)

    # -------------------------------------------------------------------------
    # DERIVED KEY SETS
    # -------------------------------------------------------------------------

    def country_codes(self) -> frozenset[str]:
        """Normalized, non-empty country codes."""
        codes = self.countries().select(country_code_expr("code")).to_series()
        return frozenset(code for code in codes if code)

    def service_carriers(self) -> frozenset[str]:
        """Normalized, non-empty carrier keys referenced by services."""
        carriers = self.services().select(carrier_key_expr("carrier")).to_series()
        return frozenset(carrier for carrier in carriers if carrier)

    def service_carrier_by_name(self) -> Mapping[str, str]:
        """
        Service name -> carrier key.

        Carrier may be "" (service exists but has no carrier configured).
        Later rows win on repeated names.
        """
        pairs = self.services().select(
            text_expr("name").alias("name"),
            carrier_key_expr("carrier").alias("carrier"),
        )
        mapping = {}
        for name, carrier in pairs.iter_rows():
            if name:
                mapping[name] = carrier
        return MappingProxyType(mapping)

    def find_country(self, code: str) -> dict | None:
        """Country row for a code (normalized comparison), or None."""
        wanted = normalize_country_code(code)
        if not wanted:
            return None
        matches = self.countries().filter(country_code_expr("code") == wanted)
        if matches.is_empty():
            return None
        row = matches.row(0, named=True)
        return {"name": row["name"].strip(), "code": wanted}

    # -------------------------------------------------------------------------
    # REPLACEMENT
    # -------------------------------------------------------------------------

    def replace_table(self, kind: TableKind, rows: pl.DataFrame) -> "ReferenceSnapshot":
        """New snapshot with one table swapped out."""
        frames = dict(self.tables)
        frames[TableKind(kind)] = rows
        return ReferenceSnapshot(tables=frames)


__all__ = [
    "ReferenceSnapshot",
    "conform_table",
]
