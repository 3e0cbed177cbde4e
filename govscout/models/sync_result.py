"""SyncSummary / ApiCallLogEntry - outputs of a sync run and of the call audit log."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SyncSummary(BaseModel):
    """Operator-facing result of one ``run_sync`` invocation."""

    api_calls_used: int = Field(0, description="HTTP requests issued (estimated in dry-run)")
    records_synced: int = Field(0, description="Records fetched across all windows")
    windows_completed: int = Field(0, description="Incremental + backfill windows processed")
    rate_limited: bool = Field(False, description="True if the run stopped on HTTP 429")
    backfill_cursor: Optional[str] = Field(None, description="Where backfill resumes (MM/DD/YYYY)")


class ApiCallLogEntry(BaseModel):
    """One row of the bounded ``api_call_log`` table."""

    id: int
    context: str = Field(..., description="incremental or backfill")
    posted_from: Optional[str] = None
    posted_to: Optional[str] = None
    api_calls: int = 0
    records_fetched: int = 0
    rate_limited: bool = False
    error: Optional[str] = None
    created_at: Optional[datetime] = None
