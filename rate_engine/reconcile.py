"""
Upload Reconciliation

Decides what a table looks like after an upload, and whether the upload is
allowed at all. Nothing is written unless the whole batch is accepted.

MODES
-----
    replace (default)   - the batch becomes the new table
    append              - the batch is merged into the current table

APPEND SEMANTICS
----------------
    rates, carrier_zones, boxes     additive only: a batch key that already
                                    exists rejects the whole batch
    countries, services, settings   upsert by key (code / id / key): the
                                    uploaded row wins, a key keeps the
                                    position where it first appeared, rows
                                    with an empty key are dropped

Rates, carrier zones and boxes are content-validated in both modes (see
rate_engine.validation). Countries, services and settings only need their
required columns.

USAGE
-----
    from rate_engine.reconcile import apply_upload, parse_mode
    result = apply_upload(store, "rates", rows, parse_mode("append"))
    if not result.ok:
        print(result.message)
"""

import logging
from dataclasses import dataclass
from enum import Enum

import polars as pl

from .data.reference.tables import (
    TableKind,
    COLUMNS,
    KEY_COLUMNS,
    UPSERT_TABLES,
    VALIDATED_TABLES,
)
from .normalize import (
    boolean_flag_expr,
    carrier_key_expr,
    country_code_expr,
    text_expr,
)
from .snapshot import ReferenceSnapshot, conform_table
from .validation import NORMALIZERS, validate
from .validation.results import Rejected, check_columns, lower_headers

logger = logging.getLogger(__name__)


class MergeMode(str, Enum):
    REPLACE = "replace"
    APPEND = "append"


def parse_mode(value) -> MergeMode:
    """"append" (any case, surrounding spaces ignored) is APPEND; anything else REPLACE."""
    if isinstance(value, MergeMode):
        return value
    if str(value or "").strip().lower() == MergeMode.APPEND.value:
        return MergeMode.APPEND
    return MergeMode.REPLACE


@dataclass(frozen=True)
class ReconcileResult:
    table: TableKind
    mode: MergeMode
    rows: pl.DataFrame | None = None
    rejection: Rejected | None = None
    incoming_count: int = 0

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @property
    def message(self) -> str:
        if self.rejection is not None:
            return self.rejection.message
        return f"{self.table.value}: {self.incoming_count} rows uploaded ({self.mode.value}), {len(self.rows)} rows total"


# =============================================================================
# RECONCILE
# =============================================================================

def reconcile(
    kind: TableKind | str,
    incoming: pl.DataFrame,
    snapshot: ReferenceSnapshot,
    mode: MergeMode = MergeMode.REPLACE,
) -> ReconcileResult:
    """
    Compute the table that results from uploading a batch.

    Args:
        kind: Table being uploaded
        incoming: Uploaded rows (header names are matched case-insensitively)
        snapshot: Current reference tables
        mode: MergeMode.REPLACE or MergeMode.APPEND

    Returns:
        ReconcileResult with the full resulting table, or the rejection

    Raises:
        ValueError: mode is not a MergeMode
    """
    kind = TableKind(kind)
    if not isinstance(mode, MergeMode):
        raise ValueError(f"Unknown merge mode: {mode!r} (use parse_mode)")

    missing_columns = check_columns(kind, incoming)
    if missing_columns is not None:
        return _rejected(kind, mode, missing_columns, len(incoming))

    if kind in VALIDATED_TABLES:
        existing = snapshot.table(kind) if mode == MergeMode.APPEND else None
        outcome = validate(kind, incoming, snapshot, existing)
        if not outcome.ok:
            return _rejected(kind, mode, outcome, len(incoming))
        rows = outcome.rows
        if existing is not None:
            rows = pl.concat([NORMALIZERS[kind](existing), rows], how="vertical")
    elif mode == MergeMode.APPEND:
        rows = upsert(kind, snapshot.table(kind), incoming)
    else:
        rows = conform_table(kind, lower_headers(incoming))

    logger.info(
        "Accepted %s upload (%s): %d incoming rows, %d rows total",
        kind.value, mode.value, len(incoming), len(rows),
    )
    return ReconcileResult(table=kind, mode=mode, rows=rows, incoming_count=len(incoming))


def _rejected(kind: TableKind, mode: MergeMode, rejection: Rejected, incoming_count: int) -> ReconcileResult:
    logger.warning("Rejected %s upload (%s): %s", kind.value, mode.value, rejection.message)
    return ReconcileResult(table=kind, mode=mode, rejection=rejection, incoming_count=incoming_count)


# =============================================================================
# UPSERT
# =============================================================================

def normalize_upsert_rows(kind: TableKind, rows: pl.DataFrame) -> pl.DataFrame:
    """
    Normalize countries, services or settings rows for an upsert.

    Every cell is trimmed. Country codes are upper-cased, service carriers
    lower-cased, service country_codes upper-cased and use_actual_weight
    rendered as "1"/"0".
    """
    if kind not in UPSERT_TABLES:
        raise ValueError(f"Table is not merged by upsert: {kind.value}")

    rows = conform_table(kind, lower_headers(rows))
    rows = rows.with_columns([text_expr(column).alias(column) for column in COLUMNS[kind]])

    if kind == TableKind.COUNTRIES:
        rows = rows.with_columns(country_code_expr("code").alias("code"))
    elif kind == TableKind.SERVICES:
        rows = rows.with_columns(
            carrier_key_expr("carrier").alias("carrier"),
            pl.col("country_codes").str.to_uppercase().alias("country_codes"),
            boolean_flag_expr("use_actual_weight").alias("use_actual_weight"),
        )
    return rows


def upsert(kind: TableKind, existing: pl.DataFrame, incoming: pl.DataFrame) -> pl.DataFrame:
    """
    Merge incoming rows into existing rows by the table's key.

    The later row wins; a key keeps the position of its first appearance.
    Rows with an empty key are dropped.
    """
    key_column = KEY_COLUMNS[kind][0]
    merged = {}
    for frame in (existing, incoming):
        for row in normalize_upsert_rows(kind, frame).iter_rows(named=True):
            key = row[key_column]
            if key:
                merged[key] = row

    return pl.DataFrame(
        [tuple(row[column] for column in COLUMNS[kind]) for row in merged.values()],
        schema={column: pl.Utf8 for column in COLUMNS[kind]},
        orient="row",
    )


# =============================================================================
# APPLY
# =============================================================================

def apply_upload(
    store,
    kind: TableKind | str,
    incoming: pl.DataFrame,
    mode: MergeMode = MergeMode.REPLACE,
) -> ReconcileResult:
    """
    Reconcile a batch against the stored tables and commit it if accepted.

    Args:
        store: Table store with load_snapshot() and commit(kind, rows)
        kind: Table being uploaded
        incoming: Uploaded rows
        mode: MergeMode.REPLACE or MergeMode.APPEND

    Returns:
        ReconcileResult; on rejection the store is left untouched
    """
    snapshot = store.load_snapshot()
    result = reconcile(kind, incoming, snapshot, mode)
    if result.ok:
        store.commit(result.table, result.rows)
    return result


__all__ = [
    "MergeMode",
    "ReconcileResult",
    "parse_mode",
    "reconcile",
    "upsert",
    "normalize_upsert_rows",
    "apply_upload",
]
