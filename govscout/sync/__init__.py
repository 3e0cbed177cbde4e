"""Incremental + backfill sync scheduling."""

from .scheduler import (
    BACKFILL_WINDOW_DAYS,
    INCREMENTAL_DAYS,
    SyncPhase,
    format_date,
    parse_date,
    print_summary,
    run_sync,
)

__all__ = [
    "BACKFILL_WINDOW_DAYS",
    "INCREMENTAL_DAYS",
    "SyncPhase",
    "format_date",
    "parse_date",
    "print_summary",
    "run_sync",
]
