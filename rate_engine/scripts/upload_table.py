"""
Upload a Reference Table
========================

Validates a CSV file against the current reference tables and, if accepted,
writes it into the data directory. A rejected file changes nothing.

Modes:
    --mode replace  The file becomes the new table (default)
    --mode append   The file is merged into the current table
                    (rates, carrier_zones, boxes: new keys only;
                     countries, services, settings: upsert by key)

Usage:
    python -m rate_engine.scripts.upload_table rates new_rates.csv
    python -m rate_engine.scripts.upload_table carrier_zones zones.csv --mode append
    python -m rate_engine.scripts.upload_table missing-zones
    python -m rate_engine.scripts.upload_table rates new_rates.csv --dry-run
"""

import argparse
import logging
import sys

import polars as pl

from rate_engine.data.loaders import CsvTableStore
from rate_engine.data.loaders.csv_store import BOM
from rate_engine.data.reference.tables import TableKind
from rate_engine.reconcile import MergeMode, apply_upload, parse_mode, reconcile
from rate_engine.zones import (
    DEFAULT_PLACEHOLDER_ZONE,
    fill_missing_carrier_zones,
    missing_carrier_zones,
)

MISSING_ZONES_COMMAND = "missing-zones"


def read_upload(path: str) -> pl.DataFrame:
    """
    Read an uploaded CSV with every column as text.

    Only a byte order mark is removed from the headers; case and spaces are
    resolved by the upload checks, which reject headers that collide.
    """
    df = pl.read_csv(path, infer_schema_length=0, truncate_ragged_lines=True)
    first = df.columns[0] if df.columns else ""
    if first.startswith(BOM) and first.lstrip(BOM) not in df.columns:
        df = df.rename({first: first.lstrip(BOM)})
    return df


def run_upload(store: CsvTableStore, kind: TableKind, path: str, mode: MergeMode, dry_run: bool) -> bool:
    rows = read_upload(path)
    print(f"Read {len(rows):,} rows from {path}")

    if dry_run:
        result = reconcile(kind, rows, store.load_snapshot(), mode)
    else:
        result = apply_upload(store, kind, rows, mode)

    if not result.ok:
        print(f"\nRejected ({result.rejection.kind.value}): {result.message}")
        return False

    prefix = "[DRY RUN] Would write" if dry_run else "Wrote"
    print(f"\n{prefix} {len(result.rows):,} rows to {store.path(kind)} ({mode.value})")
    return True


def run_missing_zones(store: CsvTableStore, placeholder: str, dry_run: bool) -> bool:
    snapshot = store.load_snapshot()
    missing = missing_carrier_zones(snapshot)
    print(f"Missing carrier zones: {len(missing)}")
    for carrier, code in missing:
        print(f"  {carrier}:{code}")

    if not missing or dry_run:
        return True

    rows = fill_missing_carrier_zones(snapshot, placeholder)
    store.commit(TableKind.CARRIER_ZONES, rows)
    print(f"\nAdded placeholder zone '{placeholder}'; edit {store.path(TableKind.CARRIER_ZONES)} to set real zones")
    return True


# =============================================================================
# MAIN
# =============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="Validate and upload a reference table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Tables:
  {', '.join(kind.value for kind in TableKind)}

Examples:
  python -m rate_engine.scripts.upload_table rates new_rates.csv
  python -m rate_engine.scripts.upload_table services services.csv --mode append
  python -m rate_engine.scripts.upload_table {MISSING_ZONES_COMMAND} --dry-run
        """
    )
    parser.add_argument(
        "table",
        choices=[kind.value for kind in TableKind] + [MISSING_ZONES_COMMAND],
        help=f"Table to upload, or '{MISSING_ZONES_COMMAND}' to add placeholder carrier zones"
    )
    parser.add_argument("csv", nargs="?", help="CSV file to upload")
    parser.add_argument(
        "--mode",
        type=str,
        default=MergeMode.REPLACE.value,
        help="replace (default) or append"
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory with the reference CSV tables (default: $RATE_ENGINE_DATA_DIR or bundled tables)"
    )
    parser.add_argument(
        "--placeholder",
        type=str,
        default=DEFAULT_PLACEHOLDER_ZONE,
        help=f"Zone written for missing carrier zones (default: {DEFAULT_PLACEHOLDER_ZONE})"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate only, don't write any table"
    )

    args = parser.parse_args()
    if args.table != MISSING_ZONES_COMMAND and not args.csv:
        parser.error("a CSV file is required when uploading a table")

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        store = CsvTableStore(args.data_dir)
        if args.table == MISSING_ZONES_COMMAND:
            ok = run_missing_zones(store, args.placeholder, args.dry_run)
        else:
            ok = run_upload(store, TableKind(args.table), args.csv, parse_mode(args.mode), args.dry_run)

        if not ok:
            sys.exit(1)

    except KeyboardInterrupt:
        print("\n\nCancelled.")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        raise


if __name__ == "__main__":
    main()
