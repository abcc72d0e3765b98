"""Calculator version, stamped on every quote as calculator_version."""

VERSION = "2026.10.0"
