"""Incremental + backfill scheduling, checkpointing and budget accounting."""

import logging
from datetime import date, timedelta

import pytest

from govscout.adapters import RateLimitedError, TransportError, UpstreamError
from govscout.database import PersistenceError
from govscout.models import Opportunity, SyncSummary
from govscout.sync import (
    BACKFILL_WINDOW_DAYS,
    INCREMENTAL_DAYS,
    SyncPhase,
    format_date,
    parse_date,
    print_summary,
    run_sync,
)

from .fakes import FakeSamGovClient, ScriptedPages, empty_page, make_page

TODAY = date(2025, 1, 10)
WINDOW = timedelta(days=BACKFILL_WINDOW_DAYS)


def test_constants():
    assert INCREMENTAL_DAYS == 3
    assert BACKFILL_WINDOW_DAYS == 90
    assert SyncPhase.INCREMENTAL.value == "incremental"
    assert SyncPhase.BACKFILL.value == "backfill"


def test_date_helpers():
    assert parse_date("01/07/2025") == date(2025, 1, 7)
    assert format_date(date(2024, 3, 5)) == "03/05/2024"
    with pytest.raises(ValueError):
        parse_date("2025-01-07")


def test_rate_limited_incremental_stops_run(store):
    client = FakeSamGovClient(ScriptedPages([RateLimitedError("429")]))

    summary = run_sync(client, store, max_api_calls=10, today=TODAY)

    assert summary == SyncSummary(
        api_calls_used=1, records_synced=0, windows_completed=1, rate_limited=True, backfill_cursor=None
    )
    assert len(client.calls) == 1
    assert store.get_sync_state("last_sync") == "01/10/2025"
    assert store.get_sync_state("backfill_cursor") is None

    [entry] = store.list_api_call_logs()
    assert entry.context == "incremental"
    assert entry.posted_from == "01/07/2025"
    assert entry.posted_to == "01/10/2025"
    assert entry.rate_limited is True
    assert entry.api_calls == 1


def test_backfill_starts_at_earliest_stored_record(store):
    store.upsert_opportunity(Opportunity(notice_id="seed", posted_date="06/15/2024"))
    client = FakeSamGovClient()

    summary = run_sync(client, store, max_api_calls=10, today=TODAY)

    start = date(2024, 6, 15)
    assert client.windows[0] == ("01/07/2025", "01/10/2025")
    assert client.windows[1] == (format_date(start - WINDOW), "06/15/2024")
    assert len(client.windows) == 9
    assert summary.api_calls_used == 9
    assert summary.windows_completed == 9
    assert summary.rate_limited is False
    assert summary.backfill_cursor == format_date(start - 8 * WINDOW)
    assert store.get_sync_state("backfill_cursor") == summary.backfill_cursor
    assert store.get_sync_state("last_sync") == "01/10/2025"
    assert store.call_log.count() == 9


def test_windows_are_contiguous(store):
    client = FakeSamGovClient()

    run_sync(client, store, max_api_calls=6, today=TODAY)

    backfill = client.windows[1:]
    assert backfill[0][1] == "01/07/2025"
    for newer, older in zip(backfill, backfill[1:]):
        assert older[1] == newer[0]
        assert parse_date(newer[1]) - parse_date(newer[0]) == WINDOW


def test_interrupted_run_resumes_at_next_window(store):
    failing = FakeSamGovClient(
        ScriptedPages([empty_page(), empty_page(), empty_page(), UpstreamError(500, "boom")])
    )

    with pytest.raises(UpstreamError):
        run_sync(failing, store, max_api_calls=10, today=TODAY)

    cursor = date(2025, 1, 7) - 2 * WINDOW
    assert store.get_sync_state("backfill_cursor") == format_date(cursor)
    assert store.get_sync_state("last_sync") is None

    failed = store.list_api_call_logs(limit=1)[0]
    assert failed.context == "backfill"
    assert failed.posted_to == format_date(cursor)
    assert failed.api_calls == 1
    assert "500" in failed.error

    resumed = FakeSamGovClient()
    run_sync(resumed, store, max_api_calls=4, today=TODAY)

    assert resumed.windows[1] == (format_date(cursor - WINDOW), format_date(cursor))


def test_dry_run_plans_without_side_effects(store):
    client = FakeSamGovClient()

    summary = run_sync(client, store, max_api_calls=5, dry_run=True, today=TODAY)

    assert client.calls == []
    assert summary.api_calls_used == 4
    assert summary.windows_completed == 4
    assert summary.records_synced == 0
    assert summary.backfill_cursor == format_date(date(2025, 1, 7) - 4 * WINDOW)
    assert store.get_sync_state("backfill_cursor") is None
    assert store.get_sync_state("last_sync") is None
    assert store.list_api_call_logs() == []


def test_from_override_sets_floor(store):
    client = FakeSamGovClient()

    summary = run_sync(client, store, max_api_calls=10, from_override="10/01/2024", today=TODAY)

    assert client.windows == [
        ("01/07/2025", "01/10/2025"),
        ("10/09/2024", "01/07/2025"),
        ("07/11/2024", "10/09/2024"),
    ]
    assert summary.windows_completed == 3
    assert summary.backfill_cursor == "07/11/2024"


def test_from_override_ignores_saved_cursor(store):
    store.set_sync_state("backfill_cursor", "03/01/2020")
    client = FakeSamGovClient()

    run_sync(client, store, max_api_calls=3, from_override="01/01/2020", today=TODAY)

    assert client.windows[1] == ("10/09/2024", "01/07/2025")


@pytest.mark.parametrize("budget", [1, 2])
def test_small_budget_skips_backfill(store, budget):
    client = FakeSamGovClient()

    summary = run_sync(client, store, max_api_calls=budget, today=TODAY)

    assert len(client.calls) == 1
    assert summary.windows_completed == 1
    assert summary.backfill_cursor is None
    assert store.get_sync_state("last_sync") == "01/10/2025"


def test_rate_limited_backfill_saves_cursor(store):
    client = FakeSamGovClient(
        ScriptedPages([empty_page(), make_page(1000, 3000), RateLimitedError("429")])
    )

    summary = run_sync(client, store, max_api_calls=10, today=TODAY)

    assert summary.api_calls_used == 3
    assert summary.records_synced == 1000
    assert summary.windows_completed == 2
    assert summary.rate_limited is True
    assert summary.backfill_cursor == "10/09/2024"
    assert store.get_sync_state("backfill_cursor") == "10/09/2024"
    assert store.get_sync_state("last_sync") == "01/10/2025"
    assert store.count_opportunities() == 1000

    entry = store.list_api_call_logs(limit=1)[0]
    assert entry.context == "backfill"
    assert entry.api_calls == 2
    assert entry.records_fetched == 1000
    assert entry.rate_limited is True


def test_persistence_failure_does_not_stop_fetch(store, monkeypatch, caplog):
    def broken_upsert(response):
        raise PersistenceError("Failed to upsert opportunities batch: database is locked")

    monkeypatch.setattr(store, "upsert_opportunities", broken_upsert)
    client = FakeSamGovClient(ScriptedPages([make_page(5, 5)]))

    with caplog.at_level(logging.ERROR):
        summary = run_sync(client, store, max_api_calls=1, today=TODAY)

    assert summary.records_synced == 5
    assert "DB upsert error" in caplog.text
    assert store.count_opportunities() == 0
    assert store.list_api_call_logs()[0].records_fetched == 5


def test_hard_failure_in_incremental_propagates(store):
    client = FakeSamGovClient(ScriptedPages([TransportError("connection refused")]))

    with pytest.raises(TransportError):
        run_sync(client, store, max_api_calls=10, today=TODAY)

    assert store.get_sync_state("last_sync") is None
    [entry] = store.list_api_call_logs()
    assert entry.context == "incremental"
    assert entry.error == "connection refused"
    assert entry.rate_limited is False


def test_print_summary(caplog):
    summary = SyncSummary(
        api_calls_used=3, records_synced=1000, windows_completed=2,
        rate_limited=True, backfill_cursor="10/09/2024",
    )

    with caplog.at_level(logging.INFO):
        print_summary(summary)

    assert "API calls used:     3" in caplog.text
    assert "Backfill cursor:    10/09/2024" in caplog.text
    assert "Rate limited" in caplog.text


def test_call_log_failure_does_not_block_checkpoints(store, monkeypatch, caplog):
    real_log = store.log_api_call
    calls = []

    def flaky_log(*args, **kwargs):
        calls.append(args)
        if len(calls) == 2:
            raise PersistenceError("Failed to log API call: database is locked")
        return real_log(*args, **kwargs)

    monkeypatch.setattr(store, "log_api_call", flaky_log)
    client = FakeSamGovClient(ScriptedPages([make_page(5, 5), empty_page()]))

    with caplog.at_level(logging.ERROR):
        summary = run_sync(client, store, max_api_calls=3, today=TODAY)

    assert summary.windows_completed == 2
    assert store.get_sync_state("backfill_cursor") == "10/09/2024"
    assert store.get_sync_state("last_sync") == "01/10/2025"
    assert store.count_opportunities() == 5
    assert "Failed to log API call" in caplog.text
    assert [e.context for e in store.list_api_call_logs()] == ["incremental"]


def test_call_log_failure_does_not_mask_fetch_error(store, monkeypatch):
    def broken_log(*args, **kwargs):
        raise PersistenceError("Failed to log API call: disk full")

    monkeypatch.setattr(store, "log_api_call", broken_log)
    client = FakeSamGovClient(ScriptedPages([UpstreamError(502, "bad gateway")]))

    with pytest.raises(UpstreamError):
        run_sync(client, store, max_api_calls=10, today=TODAY)
