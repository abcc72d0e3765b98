"""
CSV Table Store

Each reference table is one CSV file in a data directory:

    countries.csv, services.csv, carrier_zones.csv,
    rates.csv, settings.csv, boxes.csv

Every column is read as text. Header names are trimmed and lower-cased, a
UTF-8 byte order mark is ignored, and cells are trimmed. A missing or empty
file reads as an empty table.

Commits replace a whole file: the table is written to a temporary file next
to the target and renamed over it, so readers never see a half-written
table.

USAGE
-----
    store = CsvTableStore("path/to/tables")
    snapshot = store.load_snapshot()
    store.commit(TableKind.RATES, rows)
"""

import logging
import os
from pathlib import Path

import polars as pl

from .. import default_data_dir
from ..reference.tables import TableKind, COLUMNS, FILE_NAMES, empty_table
from ...snapshot import ReferenceSnapshot, conform_table

logger = logging.getLogger(__name__)

BOM = "\ufeff"


class CsvTableStore:
    """Reference tables stored as CSV files in one directory."""

    def __init__(self, data_dir: str | Path | None = None):
        self.data_dir = Path(data_dir) if data_dir else default_data_dir()

    def __repr__(self) -> str:
        return f"CsvTableStore({str(self.data_dir)!r})"

    def path(self, kind: TableKind) -> Path:
        return self.data_dir / FILE_NAMES[TableKind(kind)]

    # -------------------------------------------------------------------------
    # READ
    # -------------------------------------------------------------------------

    def read_table(self, kind: TableKind) -> pl.DataFrame:
        """
        Read one table as stored (all text).

        Columns other than the table's own are kept; callers conform the
        frame when they need the exact column set.

        Raises:
            RuntimeError: the file exists but cannot be read or parsed
        """
        kind = TableKind(kind)
        path = self.path(kind)

        if not path.exists() or path.stat().st_size == 0:
            logger.debug("No %s table at %s, using an empty table", kind.value, path)
            return empty_table(kind)

        try:
            df = pl.read_csv(path, infer_schema_length=0, truncate_ragged_lines=True)
            df = df.rename({column: column.lstrip(BOM).strip().lower() for column in df.columns})
            df = df.with_columns(pl.all().cast(pl.Utf8).fill_null("").str.strip_chars())
        except (OSError, pl.exceptions.PolarsError) as e:
            raise RuntimeError(f"Failed to read {kind.value} table from {path}: {e}")

        logger.info("Loaded %s: %d rows from %s", kind.value, len(df), path)
        return df

    def load_snapshot(self) -> ReferenceSnapshot:
        """Read every table into a new snapshot."""
        return ReferenceSnapshot.from_frames({kind: self.read_table(kind) for kind in TableKind})

    # -------------------------------------------------------------------------
    # WRITE
    # -------------------------------------------------------------------------

    def commit(self, kind: TableKind, rows: pl.DataFrame) -> Path:
        """
        Replace a table's file with the given rows.

        Rows are written in the table's column order, with a UTF-8 byte order
        mark so the file opens cleanly in spreadsheet tools.

        Returns:
            Path of the written file

        Raises:
            RuntimeError: the file cannot be written
        """
        kind = TableKind(kind)
        path = self.path(kind)
        tmp_path = path.with_name(f".{path.name}.tmp")
        rows = conform_table(kind, rows)

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            rows.write_csv(tmp_path, include_bom=True)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise RuntimeError(f"Failed to write {kind.value} table to {path}: {e}")

        logger.info("Committed %s: %d rows (%s) to %s", kind.value, len(rows), ", ".join(COLUMNS[kind]), path)
        return path


def load_snapshot(data_dir: str | Path | None = None) -> ReferenceSnapshot:
    """Snapshot of the tables in data_dir (default: see rate_engine.data.default_data_dir)."""
    return CsvTableStore(data_dir).load_snapshot()
