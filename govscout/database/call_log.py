"""Bounded audit log of fetch-window executions (``api_call_log``)."""

import logging
from typing import List, Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.engine import Engine

from .base import transaction
from .schema import api_call_log
from ..models import ApiCallLogEntry

logger = logging.getLogger(__name__)

MAX_LOG_ROWS = 200


class BoundedCallLog:
    """Append-only log that never holds more than ``max_rows`` rows.

    Every append inserts and then trims the oldest rows (by id) in the same
    transaction, so the bound holds after each call.
    """

    def __init__(self, engine: Engine, max_rows: int = MAX_LOG_ROWS) -> None:
        self._engine = engine
        self.max_rows = max_rows

    def append(
        self,
        context: str,
        posted_from: Optional[str],
        posted_to: Optional[str],
        api_calls: int,
        records_fetched: int,
        rate_limited: bool,
        error: Optional[str] = None,
    ) -> int:
        """Insert one row and prune. Returns the new row id."""
        newest = (
            select(api_call_log.c.id)
            .order_by(api_call_log.c.id.desc())
            .limit(self.max_rows)
        )
        with transaction(self._engine, "log API call") as conn:
            result = conn.execute(
                insert(api_call_log).values(
                    context=context,
                    posted_from=posted_from,
                    posted_to=posted_to,
                    api_calls=api_calls,
                    records_fetched=records_fetched,
                    rate_limited=rate_limited,
                    error=error,
                )
            )
            pruned = conn.execute(delete(api_call_log).where(api_call_log.c.id.not_in(newest)))

        if pruned.rowcount:
            logger.debug("Pruned %d api_call_log rows", pruned.rowcount)
        return result.inserted_primary_key[0]

    def recent(self, limit: int = 20) -> List[ApiCallLogEntry]:
        """Return up to ``limit`` rows, newest first."""
        stmt = select(api_call_log).order_by(api_call_log.c.id.desc()).limit(limit)
        with transaction(self._engine, "list API call logs") as conn:
            rows = conn.execute(stmt).mappings().all()
        return [ApiCallLogEntry(**row) for row in rows]

    def count(self) -> int:
        stmt = select(func.count()).select_from(api_call_log)
        with transaction(self._engine, "count API call logs") as conn:
            return conn.execute(stmt).scalar_one()
