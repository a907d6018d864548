"""
core/database.py -- Engine factory and error translation shared by the stores.

Every repository (auth/store.py, auth/sessions.py, directory/store.py) builds
its engine here so SQLite-specific connection tweaks live in one place.

store_errors() is the single point where SQLAlchemy exceptions become
core.errors.StoreError. IntegrityError is re-raised untouched because the
callers that expect it (username uniqueness) translate it themselves.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import StoreError


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url with the SQLite adjustments applied."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # TestClient and FastAPI's threadpool hand connections across threads.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
        event.listen(engine, "connect", _set_wal_mode)
    return engine


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate driver failures raised inside the block into StoreError."""
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        raise StoreError(f"{operation} failed: {exc.__class__.__name__}") from exc


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
