"""Two-phase sync: a short incremental window, then budgeted backfill.

Phase 1 always fetches ``[today - INCREMENTAL_DAYS, today]``. Phase 2 walks
backward from a durable cursor in ``BACKFILL_WINDOW_DAYS`` windows while the
API-call budget allows, saving the cursor after every window so an interrupted
run resumes at the next window instead of repeating finished ones.
"""

import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from ..adapters import SamGovClient, SamGovError
from ..database import OpportunityStore, PersistenceError
from ..models import ApiResponse, SyncSummary
from ..pager import WindowResult, paginate_window

logger = logging.getLogger(__name__)

BACKFILL_WINDOW_DAYS = 90
INCREMENTAL_DAYS = 3
# A window may need more than one page; 2 is the least worth starting with
MIN_BACKFILL_CALLS = 2
DATE_FMT = "%m/%d/%Y"

BACKFILL_CURSOR_KEY = "backfill_cursor"
LAST_SYNC_KEY = "last_sync"


class SyncPhase(str, Enum):
    """Context tags written to ``api_call_log``."""

    INCREMENTAL = "incremental"
    BACKFILL = "backfill"


def parse_date(value: str) -> date:
    """Parse an MM/DD/YYYY string."""
    try:
        return datetime.strptime(value, DATE_FMT).date()
    except ValueError as exc:
        raise ValueError(f"Failed to parse date '{value}': {exc}") from exc


def format_date(value: date) -> str:
    return value.strftime(DATE_FMT)


class _PageSink:
    """Per-page callback: persists each page and tallies what arrived.

    Persistence failures are logged and swallowed so the fetch keeps going.
    """

    def __init__(self, store: OpportunityStore) -> None:
        self.store = store
        self.pages = 0
        self.records = 0

    def __call__(self, response: ApiResponse) -> None:
        self.pages += 1
        self.records += response.page_count
        try:
            self.store.upsert_opportunities(response)
        except PersistenceError as exc:
            logger.error("DB upsert error: %s", exc)


def _log_window(
    store: OpportunityStore,
    phase: SyncPhase,
    posted_from: str,
    posted_to: str,
    api_calls: int,
    records_fetched: int,
    rate_limited: bool,
    error: Optional[str] = None,
) -> None:
    # audit rows are best effort
    try:
        store.log_api_call(
            phase.value, posted_from, posted_to, api_calls, records_fetched, rate_limited, error
        )
    except PersistenceError as exc:
        logger.error("Failed to log API call: %s", exc)


def _fetch_window(
    client: SamGovClient,
    store: OpportunityStore,
    phase: SyncPhase,
    posted_from: str,
    posted_to: str,
) -> WindowResult:
    """Fetch one window, persist its pages and write its audit row.

    A hard failure is recorded in the audit log before it propagates.
    """
    sink = _PageSink(store)
    try:
        result = paginate_window(client, posted_from, posted_to, on_page=sink)
    except SamGovError as exc:
        _log_window(
            store, phase, posted_from, posted_to,
            api_calls=sink.pages + 1,
            records_fetched=sink.records,
            rate_limited=False,
            error=str(exc),
        )
        raise

    _log_window(
        store, phase, posted_from, posted_to,
        api_calls=result.api_calls,
        records_fetched=result.records_fetched,
        rate_limited=result.rate_limited,
    )
    logger.info(
        "  Fetched %d records (%d API call%s)",
        result.records_fetched, result.api_calls, "" if result.api_calls == 1 else "s",
    )
    return result


def _resolve_cursor(store: OpportunityStore, today: date, from_override: Optional[str]) -> date:
    """Where backfill starts: override, saved cursor, earliest stored date, or today - N."""
    default = today - timedelta(days=INCREMENTAL_DAYS)

    if from_override:
        # Start right after the incremental window and walk back toward the override
        logger.info("  Using --from override: %s", from_override)
        return default

    saved = store.get_sync_state(BACKFILL_CURSOR_KEY)
    if saved:
        return parse_date(saved)

    earliest = store.get_earliest_posted_date()
    if earliest:
        return parse_date(earliest)

    return default


def run_sync(
    client: SamGovClient,
    store: OpportunityStore,
    max_api_calls: int,
    dry_run: bool = False,
    from_override: Optional[str] = None,
    today: Optional[date] = None,
) -> SyncSummary:
    """Run incremental then backfill sync within ``max_api_calls``.

    Args:
        client: SAM.gov fetch client.
        store: Open persistence store.
        max_api_calls: Budget for this run.
        dry_run: Plan windows without network calls or writes.
        from_override: MM/DD/YYYY floor; backfill restarts below the
            incremental window and stops once it reaches this date.
        today: Reference date (defaults to the local date).

    Returns:
        SyncSummary for operator output.

    Raises:
        SamGovError: any non-rate-limit fetch failure.
        PersistenceError: a checkpoint write failed.
    """
    today = today or date.today()
    today_str = format_date(today)
    summary = SyncSummary()
    planned_cursor: Optional[date] = None

    # Phase 1: incremental
    incr_from = format_date(today - timedelta(days=INCREMENTAL_DAYS))
    incr_to = today_str
    logger.info("Incremental sync: %s to %s", incr_from, incr_to)

    if dry_run:
        logger.info("  [dry-run] Would fetch window %s - %s", incr_from, incr_to)
    else:
        result = _fetch_window(client, store, SyncPhase.INCREMENTAL, incr_from, incr_to)
        summary.api_calls_used += result.api_calls
        summary.records_synced += result.records_fetched
        summary.windows_completed += 1

        if result.rate_limited:
            logger.warning("  Rate limited during incremental sync, stopping.")
            store.set_sync_state(LAST_SYNC_KEY, today_str)
            summary.rate_limited = True
            summary.backfill_cursor = store.get_sync_state(BACKFILL_CURSOR_KEY)
            return summary

    # Phase 2: backfill with the remaining budget
    remaining = max_api_calls - summary.api_calls_used
    if remaining < MIN_BACKFILL_CALLS:
        logger.info("No API budget remaining for backfill.")
    else:
        logger.info("Backfill: %d API calls remaining", remaining)
        cursor = _resolve_cursor(store, today, from_override)
        floor = parse_date(from_override) if from_override else None

        while summary.api_calls_used + MIN_BACKFILL_CALLS <= max_api_calls:
            if floor is not None and cursor <= floor:
                logger.info("  Reached --from date %s, stopping backfill.", format_date(floor))
                break

            window_from = cursor - timedelta(days=BACKFILL_WINDOW_DAYS)
            from_str = format_date(window_from)
            to_str = format_date(cursor)
            logger.info("  Backfill window: %s to %s", from_str, to_str)

            if dry_run:
                logger.info("    [dry-run] Would fetch this window")
                # estimate 1 call per window for budget tracking
                summary.api_calls_used += 1
                summary.windows_completed += 1
                cursor = window_from
                planned_cursor = cursor
                continue

            result = _fetch_window(client, store, SyncPhase.BACKFILL, from_str, to_str)
            summary.api_calls_used += result.api_calls
            summary.records_synced += result.records_fetched
            summary.windows_completed += 1

            cursor = window_from
            store.set_sync_state(BACKFILL_CURSOR_KEY, format_date(cursor))

            if result.rate_limited:
                logger.warning("  Rate limited, stopping backfill.")
                summary.rate_limited = True
                break

    if dry_run:
        summary.backfill_cursor = (
            format_date(planned_cursor) if planned_cursor else store.get_sync_state(BACKFILL_CURSOR_KEY)
        )
    else:
        store.set_sync_state(LAST_SYNC_KEY, today_str)
        summary.backfill_cursor = store.get_sync_state(BACKFILL_CURSOR_KEY)

    return summary


def print_summary(summary: SyncSummary) -> None:
    """Log the end-of-run summary block."""
    logger.info("=== Sync Summary ===")
    logger.info("  API calls used:     %d", summary.api_calls_used)
    logger.info("  Records synced:     %d", summary.records_synced)
    logger.info("  Windows completed:  %d", summary.windows_completed)
    if summary.backfill_cursor:
        logger.info("  Backfill cursor:    %s", summary.backfill_cursor)
    if summary.rate_limited:
        logger.info("  Status:             Rate limited (will resume next run)")
    else:
        logger.info("  Status:             Complete")
