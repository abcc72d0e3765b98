"""
Unit Tests for the Quote Calculator

Tests status precedence, billable weight per service, tier selection and
the ordering of quote lines.

Run with: pytest tests/test_calculate_quote.py -v
"""

import pytest
import polars as pl

from rate_engine.calculate_quote import (
    QuoteStatus,
    configuration_gaps,
    quote,
    quote_services,
)
from rate_engine.data.reference.tables import TableKind
from rate_engine.rate_lookup import find_rate
from rate_engine.version import VERSION

from conftest import carrier_zones_table, rates_table, services_table


def statuses(result):
    return [(line.service_name, line.status) for line in result.lines]


# =============================================================================
# VALIDATION OF INPUT
# =============================================================================

class TestQuoteInput:
    """Caller errors raise; lookup misses never do."""

    def test_unknown_country(self, snapshot):
        with pytest.raises(ValueError):
            quote(snapshot, "XX", weight_kg=1)

    def test_blank_country(self, snapshot):
        with pytest.raises(ValueError):
            quote(snapshot, "  ", weight_kg=1)

    @pytest.mark.parametrize("weight", [0, -1, None, float("nan")])
    def test_non_positive_weight(self, snapshot, weight):
        with pytest.raises(ValueError):
            quote(snapshot, "US", weight_kg=weight)

    def test_country_code_is_normalized(self, snapshot):
        result = quote(snapshot, " us ", weight_kg=1)
        assert result.country_code == "US"
        assert result.country_name == "United States"


# =============================================================================
# PRICING
# =============================================================================

class TestPricing:
    """Tests for priced lines and their order."""

    def test_all_carriers_priced(self, snapshot):
        # 0.8 kg -> 1 kg tier everywhere
        result = quote(snapshot, "US", weight_kg=0.8)
        assert [(line.service_name, line.price) for line in result.priced_lines] == [
            ("EMS", 2400),
            ("FedEx IP", 3500),
            ("DHL Express", 3600),
        ]
        assert result.cheapest.service_name == "EMS"

    def test_non_priced_lines_follow(self, snapshot):
        result = quote(snapshot, "US", weight_kg=0.8)
        assert statuses(result)[-1] == ("Local Courier", QuoteStatus.CARRIER_NOT_CONFIGURED)
        assert result.lines[-1].price is None

    def test_line_details(self, snapshot):
        result = quote(snapshot, "US", weight_kg=1.5)
        fedex = next(line for line in result.lines if line.service_id == "fedex_ip")
        assert fedex.carrier == "fedex"
        assert fedex.zone == "E"
        assert fedex.billable_weight_kg == pytest.approx(1.5)
        assert fedex.rate_weight_kg == pytest.approx(2.0)
        assert fedex.price == 4000
        assert fedex.color == "#4D148C"

    def test_volumetric_weight_applies(self, snapshot):
        # 30x20x10 -> 1.2 -> 1.5 kg volumetric; actual 0.4
        result = quote(snapshot, "US", weight_kg=0.4, length_cm=30, width_cm=20, height_cm=10)
        assert result.volumetric_weight_kg == pytest.approx(1.5)
        assert result.applied_weight_kg == pytest.approx(1.5)
        fedex = next(line for line in result.lines if line.service_id == "fedex_ip")
        assert fedex.billable_weight_kg == pytest.approx(1.5)
        assert fedex.price == 4000

    def test_actual_weight_service_ignores_volumetric(self, snapshot):
        # 60x50x40 -> 24 kg volumetric: beyond FedEx/DHL tiers, EMS bills 1 kg actual
        result = quote(snapshot, "US", weight_kg=1, length_cm=60, width_cm=50, height_cm=40)
        assert statuses(result) == [
            ("EMS", QuoteStatus.PRICED),
            ("FedEx IP", QuoteStatus.NO_RATE_FOR_WEIGHT),
            ("DHL Express", QuoteStatus.NO_RATE_FOR_WEIGHT),
            ("Local Courier", QuoteStatus.CARRIER_NOT_CONFIGURED),
        ]
        ems = result.lines[0]
        assert ems.uses_actual_weight
        assert ems.billable_weight_kg == pytest.approx(1.0)
        assert ems.price == 2400

    def test_equal_prices_keep_service_order(self, snapshot):
        rates = snapshot.rates().filter(pl.col("service") != "DHL Express").vstack(
            rates_table([("DHL Express", "5", "1", "3500")])
        )
        snapshot = snapshot.replace_table(TableKind.RATES, rates)
        result = quote(snapshot, "US", weight_kg=1)
        assert [line.service_name for line in result.priced_lines] == ["EMS", "FedEx IP", "DHL Express"]

    def test_heavier_than_every_tier(self, snapshot):
        result = quote(snapshot, "US", weight_kg=31)
        assert result.priced_lines == ()
        assert result.cheapest is None
        assert all(line.price is None for line in result.lines)

    def test_version_stamp(self, snapshot):
        result = quote(snapshot, "US", weight_kg=1)
        assert result.calculator_version == VERSION


# =============================================================================
# STATUS PRECEDENCE
# =============================================================================

class TestStatus:
    """unavailable > carrier_not_configured > zone_not_configured > priced / no rate."""

    def test_destination_without_zones(self, snapshot):
        result = quote(snapshot, "DE", weight_kg=1)
        assert statuses(result) == [
            ("FedEx IP", QuoteStatus.ZONE_NOT_CONFIGURED),
            ("DHL Express", QuoteStatus.ZONE_NOT_CONFIGURED),
            ("EMS", QuoteStatus.UNAVAILABLE),
            ("Local Courier", QuoteStatus.CARRIER_NOT_CONFIGURED),
        ]

    def test_unavailable_before_carrier_not_configured(self, snapshot):
        services = services_table([
            ("local", "Local Courier", "", "", "", "CA", "0"),
        ])
        snapshot = snapshot.replace_table(TableKind.SERVICES, services)
        result = quote(snapshot, "US", weight_kg=1)
        assert statuses(result) == [("Local Courier", QuoteStatus.UNAVAILABLE)]

    def test_allow_list_is_normalized(self, snapshot):
        services = services_table([
            ("ems", "EMS", "JapanPost", "", "", " us | ca ", "1"),
        ])
        snapshot = snapshot.replace_table(TableKind.SERVICES, services)
        assert quote(snapshot, "CA", weight_kg=1).lines[0].status == QuoteStatus.PRICED
        assert quote(snapshot, "DE", weight_kg=1).lines[0].status == QuoteStatus.UNAVAILABLE

    def test_zone_without_rates(self, snapshot):
        zones = snapshot.carrier_zones().vstack(carrier_zones_table([("dhl", "CA", "9")]))
        snapshot = snapshot.replace_table(TableKind.CARRIER_ZONES, zones)
        result = quote(snapshot, "CA", weight_kg=1)
        dhl = next(line for line in result.lines if line.service_id == "dhl")
        assert dhl.zone == "9"
        assert dhl.status == QuoteStatus.NO_RATE_FOR_WEIGHT

    def test_zone_mapping_with_blank_zone(self, snapshot):
        zones = snapshot.carrier_zones().vstack(carrier_zones_table([("dhl", "CA", " ")]))
        snapshot = snapshot.replace_table(TableKind.CARRIER_ZONES, zones)
        result = quote(snapshot, "CA", weight_kg=1)
        dhl = next(line for line in result.lines if line.service_id == "dhl")
        assert dhl.status == QuoteStatus.ZONE_NOT_CONFIGURED

    def test_no_services(self, snapshot):
        snapshot = snapshot.replace_table(TableKind.SERVICES, services_table([]))
        result = quote(snapshot, "US", weight_kg=1)
        assert result.lines == ()


# =============================================================================
# DIAGNOSTICS
# =============================================================================

class TestConfigurationGaps:
    """Missing carriers and zones, reported across all services."""

    def test_us(self, snapshot):
        result = quote(snapshot, "US", weight_kg=1)
        assert result.carrier_not_configured == ("Local Courier",)
        assert result.zone_not_configured == ()

    def test_de(self, snapshot):
        # EMS is unavailable for DE but japanpost has a DE zone
        carrier_missing, zone_missing = configuration_gaps(snapshot, "de")
        assert carrier_missing == ("Local Courier",)
        assert zone_missing == ("fedex:DE", "dhl:DE")

    def test_deduplicated(self, snapshot):
        services = services_table([
            ("a", "A", "ups", "", "", "", "0"),
            ("b", "B", "ups", "", "", "", "0"),
            ("c", "", "", "", "", "", "0"),
        ])
        snapshot = snapshot.replace_table(TableKind.SERVICES, services)
        carrier_missing, zone_missing = configuration_gaps(snapshot, "US")
        assert carrier_missing == ("c",)
        assert zone_missing == ("ups:US",)


# =============================================================================
# DATAFRAME PIPELINE
# =============================================================================

class TestQuoteServices:
    """Tests for the DataFrame form of the quote."""

    def test_columns(self, snapshot):
        df = quote_services(snapshot, "US", 0.8)
        assert df.columns == [
            "service_id", "service_name", "carrier", "color", "description",
            "uses_actual_weight", "available", "zone", "billable_weight_kg",
            "status", "price", "rate_weight_kg", "calculator_version",
        ]
        assert len(df) == 4

    def test_matches_quote(self, snapshot):
        df = quote_services(snapshot, "US", 1.0, 24.0)
        result = quote(snapshot, "US", weight_kg=1, length_cm=60, width_cm=50, height_cm=40)
        assert df["service_name"].to_list() == [line.service_name for line in result.lines]
        assert df["status"].to_list() == [line.status.value for line in result.lines]


# =============================================================================
# AGREEMENT WITH RATE LOOKUP
# =============================================================================

class TestTierAgreement:
    """quote() prices each line with the same tier find_rate() returns."""

    @pytest.mark.parametrize("weight", [0.1, 0.5, 0.51, 1, 1.01, 2, 4.99, 5, 5.01])
    def test_tier_boundaries(self, snapshot, weight):
        result = quote(snapshot, "US", weight_kg=weight)
        fedex = next(line for line in result.lines if line.service_id == "fedex_ip")
        entry = find_rate(snapshot.rates(), "FedEx IP", "E", weight)

        if entry is None:
            assert fedex.status == QuoteStatus.NO_RATE_FOR_WEIGHT
            assert fedex.price is None
        else:
            assert fedex.status == QuoteStatus.PRICED
            assert (fedex.price, fedex.rate_weight_kg) == (entry.price, entry.weight_kg)

    def test_blank_service_name_never_priced(self, snapshot):
        services = services_table([("nameless", "", "fedex", "", "", "", "0")])
        rates = rates_table([("", "E", "1", "100")])
        snapshot = snapshot.replace_table(TableKind.SERVICES, services).replace_table(TableKind.RATES, rates)

        assert find_rate(snapshot.rates(), "", "E", 1) is None
        line = quote(snapshot, "US", weight_kg=1).lines[0]
        assert line.zone == "E"
        assert line.status == QuoteStatus.NO_RATE_FOR_WEIGHT
