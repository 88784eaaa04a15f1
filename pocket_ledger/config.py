"""Configuration management for the ledger.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Base project root - assumes this file is in pocket_ledger/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("POCKET_LEDGER_DATA_DIR", _PROJECT_ROOT / "data"))
REPORTS_DIR = Path(os.getenv("POCKET_LEDGER_REPORTS_DIR", DATA_DIR / "reports"))

# Database
DB_PATH = Path(
    os.getenv("POCKET_LEDGER_DB_PATH", DATA_DIR / "ledger.db")
).resolve()

# Display
DEFAULT_LOCALE = os.getenv("POCKET_LEDGER_LOCALE", "en_US")
DEFAULT_USER = os.getenv("POCKET_LEDGER_USER", "local")

# Budget policy
ALERT_THRESHOLD = 50.0
SUGGESTION_MARGIN = 1.1
SUGGESTION_MONTHS = 3

LOG_LEVEL = os.getenv("POCKET_LEDGER_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, REPORTS_DIR, DB_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for scripts and the dashboard."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
