"""Transaction helper and the persistence failure type."""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError


class PersistenceError(RuntimeError):
    """Schema initialization or a write transaction failed and was rolled back."""


@contextmanager
def transaction(engine: Engine, action: str) -> Iterator[Connection]:
    """Run the block in one transaction; commit on success, roll back on error.

    SQLAlchemy failures are re-raised as :class:`PersistenceError` naming ``action``.
    """
    try:
        with engine.begin() as conn:
            yield conn
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Failed to {action}: {exc}") from exc
