"""
Rate Engine Data Loaders

Reads the reference tables from a directory of CSV files and writes
accepted tables back.
"""

from .csv_store import (
    CsvTableStore,
    load_snapshot,
)

__all__ = [
    "CsvTableStore",
    "load_snapshot",
]
