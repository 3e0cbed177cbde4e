"""Embedded SQLite persistence for the sync engine."""

from .base import PersistenceError
from .call_log import MAX_LOG_ROWS, BoundedCallLog
from .client import OpportunityStore, resolve_db_path

__all__ = ["OpportunityStore", "BoundedCallLog", "PersistenceError", "MAX_LOG_ROWS", "resolve_db_path"]
