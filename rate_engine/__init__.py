"""
Rate Engine

International shipping quotes from reference tables: destination zones per
carrier, billable weight, tiered rate tables, and integrity checks for
every table upload.
"""

from .calculate_quote import quote, quote_services
from .reconcile import apply_upload, reconcile, parse_mode
from .snapshot import ReferenceSnapshot
from .validation import validate
from .version import VERSION

__all__ = [
    "quote",
    "quote_services",
    "apply_upload",
    "reconcile",
    "parse_mode",
    "ReferenceSnapshot",
    "validate",
    "VERSION",
]
