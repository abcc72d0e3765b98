"""
Table Definitions

One entry per reference table: file name, column order, natural key and the
columns an incoming batch must carry.

All columns are stored as text (pl.Utf8). Numeric columns hold canonical
decimal strings, see rate_engine.normalize.

KEYS
----
    countries       code                        (upsert key on append)
    services        id                          (upsert key on append)
    carrier_zones   carrier + country_code      (must be unique)
    rates           service + zone + weight     (must be unique)
    settings        key                         (upsert key on append)
    boxes           key                         (must be unique)

Services are referenced by name from rates, and by carrier from
carrier_zones. Neither is a storage key.
"""

from enum import Enum

import polars as pl


class TableKind(str, Enum):
    COUNTRIES = "countries"
    SERVICES = "services"
    CARRIER_ZONES = "carrier_zones"
    RATES = "rates"
    SETTINGS = "settings"
    BOXES = "boxes"


COLUMNS: dict[TableKind, list[str]] = {
    TableKind.COUNTRIES: ["name", "code"],
    TableKind.SERVICES: [
        "id", "name", "carrier", "color", "description",
        "country_codes", "use_actual_weight",
    ],
    TableKind.CARRIER_ZONES: ["carrier", "country_code", "zone"],
    TableKind.RATES: ["service", "zone", "weight", "price"],
    TableKind.SETTINGS: ["key", "value"],
    TableKind.BOXES: [
        "key", "label", "length_cm", "width_cm", "height_cm", "comment", "sort",
    ],
}

# Columns an uploaded batch must have; the rest are filled with ""
REQUIRED_COLUMNS: dict[TableKind, list[str]] = {
    TableKind.COUNTRIES: ["name", "code"],
    TableKind.SERVICES: ["id", "name", "carrier"],
    TableKind.CARRIER_ZONES: ["carrier", "country_code", "zone"],
    TableKind.RATES: ["service", "zone", "weight", "price"],
    TableKind.SETTINGS: ["key", "value"],
    TableKind.BOXES: ["key", "label", "length_cm", "width_cm", "height_cm"],
}

KEY_COLUMNS: dict[TableKind, list[str]] = {
    TableKind.COUNTRIES: ["code"],
    TableKind.SERVICES: ["id"],
    TableKind.CARRIER_ZONES: ["carrier", "country_code"],
    TableKind.RATES: ["service", "zone", "weight"],
    TableKind.SETTINGS: ["key"],
    TableKind.BOXES: ["key"],
}

FILE_NAMES: dict[TableKind, str] = {kind: f"{kind.value}.csv" for kind in TableKind}

# Append semantics per table
UPSERT_TABLES = frozenset({TableKind.COUNTRIES, TableKind.SERVICES, TableKind.SETTINGS})
VALIDATED_TABLES = frozenset({TableKind.CARRIER_ZONES, TableKind.RATES, TableKind.BOXES})


def schema(kind: TableKind) -> dict[str, pl.DataType]:
    """Polars schema for a table: every column is text."""
    return {column: pl.Utf8 for column in COLUMNS[kind]}


def empty_table(kind: TableKind) -> pl.DataFrame:
    return pl.DataFrame(schema=schema(kind))
