"""Configuration management for the bucket planner.

This module centralizes all configuration values including paths,
display defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

# Base project root - assumes this file is in bucket_planner/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUCKET_PLANNER_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("BUCKET_PLANNER_DB_PATH", DATA_DIR / "bucket_planner.db")
).resolve()

# Display currency (single currency only)
CURRENCY = os.getenv("BUCKET_PLANNER_CURRENCY", "EUR")

LOG_LEVEL = os.getenv("BUCKET_PLANNER_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories(db_path: Optional[Union[str, Path]] = None) -> None:
    """Create the directory holding the database if it doesn't exist.

    Defaults to the configured :data:`DB_PATH`.
    """
    target = Path(db_path) if db_path is not None else DB_PATH
    target.parent.mkdir(parents=True, exist_ok=True)


def get_db_path() -> str:
    """Get the database path as a string."""
    return str(DB_PATH)


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Configure root logging for an entry point.

    Library modules only create their own loggers; the dashboard (or any
    other script) calls this once at start-up.
    """
    resolved = level if level is not None else LOG_LEVEL
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
