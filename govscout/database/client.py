"""Embedded SQLite store for SAM.gov opportunities, sync state and call audit log."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, delete, event, func, insert, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .base import PersistenceError, transaction
from .call_log import BoundedCallLog
from .mapping import OPPORTUNITY_COLUMNS, contact_rows, opportunity_row
from .schema import contacts, metadata, opportunities, sync_state
from ..models import ApiCallLogEntry, ApiResponse, Opportunity

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "govscout.db"

# One writer, many readers; writers wait up to 5s instead of failing
FILE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)
MEMORY_PRAGMAS = ("PRAGMA foreign_keys=ON",)


def resolve_db_path(db_path: Optional[str] = None) -> Path:
    """Explicit path, else GOVSCOUT_DB, else ``govscout.db`` in the working directory."""
    return Path(db_path or os.environ.get("GOVSCOUT_DB") or DEFAULT_DB_PATH)


def _install_pragmas(engine: Engine, pragmas: tuple) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        for pragma in pragmas:
            cursor.execute(pragma)
        cursor.close()


class OpportunityStore:
    """Persistence for the sync engine.

    Owns the ``opportunities`` and ``contacts`` rows; exposes the
    ``sync_state`` key/value table and the bounded ``api_call_log`` to the
    scheduler. Every multi-row write runs in a single transaction.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self.call_log = BoundedCallLog(engine)
        self._init_schema()

    @classmethod
    def open(cls, db_path: Optional[str] = None) -> "OpportunityStore":
        """Open (creating if needed) the on-disk database."""
        path = resolve_db_path(db_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Failed to create database directory: {path.parent}") from exc

        engine = create_engine(f"sqlite:///{path}")
        _install_pragmas(engine, FILE_PRAGMAS)
        logger.info("Opened database at %s", path)
        return cls(engine)

    @classmethod
    def in_memory(cls) -> "OpportunityStore":
        """Private in-memory database (one shared connection)."""
        engine = create_engine(
            "sqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        _install_pragmas(engine, MEMORY_PRAGMAS)
        return cls(engine)

    def _init_schema(self) -> None:
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to initialize database schema: {exc}") from exc

    def close(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Opportunities
    # ------------------------------------------------------------------

    def upsert_opportunity(self, opp: Opportunity) -> bool:
        """Insert or update one opportunity and replace its contacts.

        Returns:
            False (and writes nothing) when the record has no notice_id.
        """
        if not opp.notice_id:
            return False
        with transaction(self._engine, f"upsert opportunity {opp.notice_id}") as conn:
            self._upsert(conn, opp)
        return True

    def upsert_opportunities(self, response: ApiResponse) -> int:
        """Upsert every record of one search response in a single transaction.

        Returns:
            Number of records written (records without notice_id are skipped).
        """
        if response.opportunities_data is None:
            return 0

        written = 0
        with transaction(self._engine, "upsert opportunities batch") as conn:
            for opp in response.opportunities_data:
                if not opp.notice_id:
                    continue
                self._upsert(conn, opp)
                written += 1

        logger.debug("Upserted %d of %d records", written, response.page_count)
        return written

    @staticmethod
    def _upsert(conn: Connection, opp: Opportunity) -> None:
        stmt = sqlite_insert(opportunities).values(opportunity_row(opp))
        updates = {m.column: stmt.excluded[m.column] for m in OPPORTUNITY_COLUMNS}
        updates["modified_at"] = func.current_timestamp()
        conn.execute(
            stmt.on_conflict_do_update(index_elements=[opportunities.c.notice_id], set_=updates)
        )

        # Contacts carry no upstream key: replace the whole set
        conn.execute(delete(contacts).where(contacts.c.notice_id == opp.notice_id))
        rows = contact_rows(opp.notice_id, opp.point_of_contact)
        if rows:
            conn.execute(insert(contacts), rows)

    def get_opportunity(self, notice_id: str) -> Optional[Dict[str, Any]]:
        stmt = select(opportunities).where(opportunities.c.notice_id == notice_id)
        with transaction(self._engine, "read opportunity") as conn:
            row = conn.execute(stmt).mappings().first()
        return dict(row) if row else None

    def get_contacts(self, notice_id: str) -> List[Dict[str, Any]]:
        stmt = select(contacts).where(contacts.c.notice_id == notice_id).order_by(contacts.c.id)
        with transaction(self._engine, "read contacts") as conn:
            return [dict(row) for row in conn.execute(stmt).mappings()]

    def count_opportunities(self) -> int:
        stmt = select(func.count()).select_from(opportunities)
        with transaction(self._engine, "count opportunities") as conn:
            return conn.execute(stmt).scalar_one()

    def get_earliest_posted_date(self) -> Optional[str]:
        """Minimum non-null posted_date string.

        posted_date is MM/DD/YYYY text, so this is a lexicographic minimum.
        """
        stmt = select(func.min(opportunities.c.posted_date)).where(
            opportunities.c.posted_date.is_not(None)
        )
        with transaction(self._engine, "query earliest posted_date") as conn:
            return conn.execute(stmt).scalar()

    # ------------------------------------------------------------------
    # Sync state
    # ------------------------------------------------------------------

    def get_sync_state(self, key: str) -> Optional[str]:
        stmt = select(sync_state.c["value"]).where(sync_state.c["key"] == key)
        with transaction(self._engine, "query sync_state") as conn:
            return conn.execute(stmt).scalar()

    def set_sync_state(self, key: str, value: str) -> None:
        stmt = sqlite_insert(sync_state).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=[sync_state.c["key"]], set_={"value": stmt.excluded["value"]}
        )
        with transaction(self._engine, "set sync_state") as conn:
            conn.execute(stmt)
        logger.debug("sync_state %s=%s", key, value)

    # ------------------------------------------------------------------
    # API call audit log
    # ------------------------------------------------------------------

    def log_api_call(
        self,
        context: str,
        posted_from: Optional[str],
        posted_to: Optional[str],
        api_calls: int,
        records_fetched: int,
        rate_limited: bool,
        error: Optional[str] = None,
    ) -> int:
        return self.call_log.append(
            context, posted_from, posted_to, api_calls, records_fetched, rate_limited, error
        )

    def list_api_call_logs(self, limit: int = 20) -> List[ApiCallLogEntry]:
        return self.call_log.recent(limit)
