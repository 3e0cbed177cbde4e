"""GovScout sync entry point.

Subcommands:
- sync: incremental + backfill run (``--schedule`` repeats it with APScheduler)
- search: one search page (or every page with ``--all``), upserted locally
- get: single notice lookup, upserted locally
- logs: newest rows of the API call audit log
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta
from typing import List, Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .adapters import SamGovClient, SamGovError
from .config import Config, load_config
from .database import OpportunityStore, PersistenceError
from .models import SearchParams, SyncSummary
from .pager import paginate_all
from .sync import format_date, print_summary, run_sync

logger = logging.getLogger(__name__)

SEARCH_DEFAULT_DAYS = 30


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger().setLevel(level)


def sync_once(
    config: Config,
    max_api_calls: Optional[int] = None,
    dry_run: bool = False,
    from_override: Optional[str] = None,
) -> SyncSummary:
    """One sync run against the configured database."""
    budget = max_api_calls if max_api_calls is not None else config.max_api_calls
    logger.info("=" * 60)
    logger.info("Starting sync (budget=%d dry_run=%s)", budget, dry_run)
    logger.info("=" * 60)
    start_time = datetime.now()

    store = OpportunityStore.open(config.govscout_db)
    try:
        with SamGovClient(api_key=config.samgov_api_key) as client:
            summary = run_sync(client, store, budget, dry_run=dry_run, from_override=from_override)
    finally:
        store.close()

    print_summary(summary)
    duration = (datetime.now() - start_time).total_seconds()
    logger.info("Sync completed in %.2f seconds", duration)
    return summary


def _scheduled_sync(config: Config) -> None:
    try:
        sync_once(config)
    except (SamGovError, PersistenceError) as exc:
        # the next interval resumes from the saved cursor
        logger.error("Scheduled sync failed: %s", exc)


def start_scheduler(config: Config) -> None:
    """Run ``sync_once`` every ``polling_interval_minutes``, starting now.

    ``max_instances=1`` keeps this process from overlapping its own runs.
    """
    logger.info("Polling interval: %d minutes", config.polling_interval_minutes)

    scheduler = BlockingScheduler()
    scheduler.add_job(
        _scheduled_sync,
        trigger=IntervalTrigger(minutes=config.polling_interval_minutes),
        args=[config],
        id="sync_samgov",
        name="Incremental + backfill sync from SAM.gov",
        replace_existing=True,
        max_instances=1,
        next_run_time=datetime.now(),
    )

    logger.info("✓ Scheduler started")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down scheduler...")
        scheduler.shutdown(wait=False)
        logger.info("✓ Scheduler stopped")


def run_search(config: Config, args: argparse.Namespace) -> int:
    """Search SAM.gov and upsert results. Returns the number of records fetched."""
    now = datetime.now()
    params = SearchParams(
        limit=args.limit,
        offset=args.offset,
        posted_from=args.posted_from or format_date(now - timedelta(days=SEARCH_DEFAULT_DAYS)),
        posted_to=args.posted_to or format_date(now),
        title=args.title,
        ptype=args.ptype,
        naics=args.naics,
        state=args.state,
        set_aside=args.set_aside,
    )

    store = OpportunityStore.open(config.govscout_db)
    try:
        with SamGovClient(api_key=config.samgov_api_key) as client:
            if args.all:
                result = paginate_all(client, params, on_page=store.upsert_opportunities)
                fetched, total = result.total_fetched, result.first_page.total_records
            else:
                response = client.search(params)
                store.upsert_opportunities(response)
                fetched, total = response.page_count, response.total_records
    finally:
        store.close()

    logger.info("Fetched %d of %s matching opportunities", fetched, total)
    return fetched


def run_get(config: Config, notice_id: str) -> None:
    store = OpportunityStore.open(config.govscout_db)
    try:
        with SamGovClient(api_key=config.samgov_api_key) as client:
            opp = client.get(notice_id)
        store.upsert_opportunity(opp)
    finally:
        store.close()
    logger.info("%s: %s (posted %s)", opp.notice_id, opp.title, opp.posted_date)


def show_logs(config: Config, limit: int) -> None:
    store = OpportunityStore.open(config.govscout_db)
    try:
        entries = store.list_api_call_logs(limit)
    finally:
        store.close()

    for entry in entries:
        logger.info(
            "#%d %s context=%s window=%s-%s calls=%d records=%d rate_limited=%s%s",
            entry.id, entry.created_at, entry.context, entry.posted_from, entry.posted_to,
            entry.api_calls, entry.records_fetched, entry.rate_limited,
            f" error={entry.error}" if entry.error else "",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="govscout",
        description="Sync federal contract opportunities from SAM.gov into a local database",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Incremental + backfill sync")
    sync.add_argument("--max-calls", type=int, default=None, help="API call budget for this run")
    sync.add_argument("--dry-run", action="store_true", help="Plan windows without calling the API")
    sync.add_argument("--from", dest="from_override", default=None,
                      help="Backfill floor date (MM/DD/YYYY)")
    sync.add_argument("--schedule", action="store_true",
                      help="Keep running, syncing every POLLING_INTERVAL_MINUTES")

    search = subparsers.add_parser("search", help="Search opportunities and store them")
    search.add_argument("-l", "--limit", type=int, default=10, choices=range(1, 1001),
                        metavar="[1-1000]")
    search.add_argument("-t", "--title")
    search.add_argument("-p", "--ptype", help="Opportunity type code (o,p,k,r,s,a,u,g,i)")
    search.add_argument("-n", "--naics")
    search.add_argument("-s", "--state")
    search.add_argument("--set-aside")
    search.add_argument("--from", dest="posted_from", help="Posted from date (MM/DD/YYYY)")
    search.add_argument("--to", dest="posted_to", help="Posted to date (MM/DD/YYYY)")
    search.add_argument("--offset", type=int, default=0)
    search.add_argument("--all", action="store_true", help="Fetch every page")

    get = subparsers.add_parser("get", help="Fetch one notice by ID and store it")
    get.add_argument("notice_id")

    logs = subparsers.add_parser("logs", help="Show recent API call log entries")
    logs.add_argument("--limit", type=int, default=20)

    return parser


def _needs_api_key(args: argparse.Namespace) -> bool:
    """``logs`` and a one-off ``sync --dry-run`` never call SAM.gov."""
    if args.command == "logs":
        return False
    if args.command == "sync" and args.dry_run and not args.schedule:
        return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(require_api_key=_needs_api_key(args))
    except ValueError as exc:
        configure_logging()
        logger.error("%s", exc)
        return 1

    configure_logging(config.log_level)

    try:
        if args.command == "sync":
            if args.schedule:
                start_scheduler(config)
            else:
                sync_once(config, args.max_calls, args.dry_run, args.from_override)
        elif args.command == "search":
            run_search(config, args)
        elif args.command == "get":
            run_get(config, args.notice_id)
        elif args.command == "logs":
            show_logs(config, args.limit)
    except (SamGovError, PersistenceError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
