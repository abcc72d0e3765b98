"""
Rate Engine Data

Where the reference tables live.

Structure:
    - reference/: Table definitions, configuration and the sample tables (CSV)
    - loaders/: CSV table store (read tables, commit validated tables)

The data directory defaults to reference/. Set RATE_ENGINE_DATA_DIR to point
the engine at a different directory of CSV files.
"""

import os
from pathlib import Path


REFERENCE_DIR = Path(__file__).parent / "reference"

DATA_DIR_ENV = "RATE_ENGINE_DATA_DIR"


def default_data_dir() -> Path:
    """RATE_ENGINE_DATA_DIR if set and non-empty, else the bundled reference tables."""
    configured = os.environ.get(DATA_DIR_ENV, "").strip()
    if configured:
        return Path(configured).expanduser()
    return REFERENCE_DIR
