"""
Unit Tests for the CSV Table Store

Run with: pytest tests/test_csv_store.py -v
"""

import pytest
import polars as pl

from rate_engine.data import DATA_DIR_ENV, REFERENCE_DIR, default_data_dir
from rate_engine.calculate_quote import quote
from rate_engine.data.loaders import CsvTableStore, load_snapshot
from rate_engine.data.reference.tables import TableKind

from conftest import rates_table


# =============================================================================
# DATA DIRECTORY
# =============================================================================

class TestDataDir:

    def test_default_is_bundled_reference(self, monkeypatch):
        monkeypatch.delenv(DATA_DIR_ENV, raising=False)
        assert default_data_dir() == REFERENCE_DIR
        assert CsvTableStore().data_dir == REFERENCE_DIR

    def test_environment_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
        assert CsvTableStore().data_dir == tmp_path

    def test_blank_environment_ignored(self, monkeypatch):
        monkeypatch.setenv(DATA_DIR_ENV, "  ")
        assert default_data_dir() == REFERENCE_DIR


# =============================================================================
# READ
# =============================================================================

class TestRead:

    def test_bundled_tables(self):
        snapshot = load_snapshot(REFERENCE_DIR)
        assert len(snapshot.countries()) == 6
        assert snapshot.service_carriers() == {"fedex", "dhl", "japanpost"}
        assert snapshot.settings["boxGuideRefCm"] == "60"
        assert all(dtype == pl.Utf8 for dtype in snapshot.rates().schema.values())

    def test_missing_file_is_empty_table(self, tmp_path):
        df = CsvTableStore(tmp_path).read_table(TableKind.RATES)
        assert df.is_empty()
        assert df.columns == ["service", "zone", "weight", "price"]

    def test_empty_file_is_empty_table(self, tmp_path):
        (tmp_path / "countries.csv").write_text("")
        assert CsvTableStore(tmp_path).read_table(TableKind.COUNTRIES).is_empty()

    def test_headers_and_cells_cleaned(self, tmp_path):
        (tmp_path / "countries.csv").write_text(
            "\ufeffName , CODE\n United States , us \nCanada,\n",
            encoding="utf-8",
        )
        df = CsvTableStore(tmp_path).read_table(TableKind.COUNTRIES)
        assert df.columns == ["name", "code"]
        assert df.rows() == [("United States", "us"), ("Canada", "")]

    def test_headers_colliding_after_lower_case(self, tmp_path):
        (tmp_path / "countries.csv").write_text("name,Name,code\nJapan,Nippon,JP\n")
        with pytest.raises(RuntimeError, match="countries"):
            CsvTableStore(tmp_path).read_table(TableKind.COUNTRIES)

    def test_values_stay_text(self, tmp_path):
        (tmp_path / "rates.csv").write_text("service,zone,weight,price\nEMS,01,0.50,1200\n")
        df = CsvTableStore(tmp_path).read_table(TableKind.RATES)
        assert df.row(0) == ("EMS", "01", "0.50", "1200")


# =============================================================================
# COMMIT
# =============================================================================

class TestCommit:

    def test_round_trip(self, tmp_path):
        store = CsvTableStore(tmp_path)
        rows = rates_table([("FedEx IP", "E", "0.5", "3000"), ("FedEx IP", "E", "1", "3500")])
        path = store.commit(TableKind.RATES, rows)
        assert path == tmp_path / "rates.csv"
        assert store.read_table(TableKind.RATES).equals(rows)

    def test_written_in_table_column_order(self, tmp_path):
        store = CsvTableStore(tmp_path)
        rows = pl.DataFrame({"code": ["JP"], "extra": ["x"], "name": ["Japan"]})
        store.commit(TableKind.COUNTRIES, rows)
        assert store.read_table(TableKind.COUNTRIES).rows() == [("Japan", "JP")]

    def test_no_temporary_file_left(self, tmp_path):
        store = CsvTableStore(tmp_path)
        store.commit(TableKind.RATES, rates_table([("EMS", "1", "1", "2150")]))
        assert sorted(p.name for p in tmp_path.iterdir()) == ["rates.csv"]

    def test_creates_data_dir(self, tmp_path):
        store = CsvTableStore(tmp_path / "new" / "tables")
        store.commit(TableKind.RATES, rates_table([]))
        assert (tmp_path / "new" / "tables" / "rates.csv").exists()

    def test_write_failure(self, tmp_path):
        blocker = tmp_path / "tables"
        blocker.write_text("not a directory")
        with pytest.raises(RuntimeError):
            CsvTableStore(blocker).commit(TableKind.RATES, rates_table([]))


# =============================================================================
# SAMPLE DATA
# =============================================================================

class TestSampleData:
    """The bundled tables are complete enough to quote from."""

    def test_quote_us(self):
        result = quote(load_snapshot(REFERENCE_DIR), "US", weight_kg=1)
        assert [(line.service_id, line.price) for line in result.lines] == [
            ("ems", 3100),
            ("dhl_express", 3850),
            ("fedex_ip", 4100),
        ]
        assert result.country_name == "アメリカ"
