"""
Shared fixtures: a small in-memory set of reference tables.

    services        FedEx IP (fedex), DHL Express (dhl),
                    EMS (japanpost, US/CA only, bills actual weight),
                    Local Courier (no carrier)
    carrier_zones   fedex: US, CA -> E
                    dhl: US -> 5 (no CA, no DE)
                    japanpost: US, CA -> 3, DE -> 2
"""

import pytest
import polars as pl

from rate_engine.data.reference.tables import TableKind
from rate_engine.snapshot import ReferenceSnapshot


def table(rows: list[tuple], columns: list[str]) -> pl.DataFrame:
    """Text table from row tuples."""
    return pl.DataFrame(rows, schema={c: pl.Utf8 for c in columns}, orient="row")


def countries_table(rows):
    return table(rows, ["name", "code"])


def services_table(rows):
    return table(rows, ["id", "name", "carrier", "color", "description", "country_codes", "use_actual_weight"])


def carrier_zones_table(rows):
    return table(rows, ["carrier", "country_code", "zone"])


def rates_table(rows):
    return table(rows, ["service", "zone", "weight", "price"])


def boxes_table(rows):
    return table(rows, ["key", "label", "length_cm", "width_cm", "height_cm", "comment", "sort"])


def settings_table(rows):
    return table(rows, ["key", "value"])


@pytest.fixture
def frames():
    return {
        TableKind.COUNTRIES: countries_table([
            ("United States", "US"),
            ("Canada", "CA"),
            ("Germany", "DE"),
        ]),
        TableKind.SERVICES: services_table([
            ("fedex_ip", "FedEx IP", "fedex", "#4D148C", "1-3 days", "", "0"),
            ("dhl", "DHL Express", "dhl", "#D40511", "2-4 days", "", "0"),
            ("ems", "EMS", "japanpost", "#E60012", "Up to 30kg", "US,CA", "1"),
            ("local", "Local Courier", "", "#999999", "Same day", "", "0"),
        ]),
        TableKind.CARRIER_ZONES: carrier_zones_table([
            ("fedex", "US", "E"),
            ("fedex", "CA", "E"),
            ("dhl", "US", "5"),
            ("japanpost", "US", "3"),
            ("japanpost", "CA", "3"),
            ("japanpost", "DE", "2"),
        ]),
        TableKind.RATES: rates_table([
            ("FedEx IP", "E", "0.5", "3000"),
            ("FedEx IP", "E", "1", "3500"),
            ("FedEx IP", "E", "2", "4000"),
            ("FedEx IP", "E", "5", "6000"),
            ("DHL Express", "5", "0.5", "2800"),
            ("DHL Express", "5", "1", "3600"),
            ("DHL Express", "5", "2", "4200"),
            ("EMS", "3", "0.5", "2000"),
            ("EMS", "3", "1", "2400"),
            ("EMS", "3", "2", "3000"),
            ("EMS", "3", "30", "15000"),
            ("EMS", "2", "0.5", "1800"),
        ]),
        TableKind.SETTINGS: settings_table([
            ("title", "Shipping Quotes"),
            ("notes", "Fuel included|Duties not included"),
        ]),
        TableKind.BOXES: boxes_table([
            ("s", "Small", "25", "20", "10", "Books", "10"),
            ("m", "Medium", "40", "30", "20", "", "20"),
            ("l", "Large", "60", "40", "30", "", "30"),
        ]),
    }


@pytest.fixture
def snapshot(frames):
    return ReferenceSnapshot.from_frames(frames)
