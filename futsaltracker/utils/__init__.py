"""
Utilities package for the Futsal Tracker.

This package contains utility functions used throughout the application.
"""
from .time_utils import fmt_mmss, utc_now, to_iso, parse_iso
from .constants import (
    APP_TITLE, FORMAT_DEFAULTS, FUTSAL_POSITIONS,
    MIN_JERSEY_NUMBER, MAX_JERSEY_NUMBER, VIEWER_QUEUE_SIZE,
    STREAM_KEEPALIVE_SECONDS, DEFAULT_HOST, DEFAULT_PORT, AUTOSAVE_DIR
)

__all__ = [
    "fmt_mmss", "utc_now", "to_iso", "parse_iso", "APP_TITLE",
    "FORMAT_DEFAULTS", "FUTSAL_POSITIONS",
    "MIN_JERSEY_NUMBER", "MAX_JERSEY_NUMBER", "VIEWER_QUEUE_SIZE",
    "STREAM_KEEPALIVE_SECONDS", "DEFAULT_HOST", "DEFAULT_PORT", "AUTOSAVE_DIR"
]
