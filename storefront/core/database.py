"""SQLAlchemy engine and session management for the embedded database."""

from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from typing import Any

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from storefront.core.config import get_settings
from storefront.models import Base


@lru_cache
def get_engine() -> Engine:
    """Get cached SQLAlchemy engine singleton.

    SQLite connections run in WAL mode with full fsync so every committed
    write is durable before the request returns.

    Returns:
        Engine: Engine bound to the configured database URL.
    """
    settings = get_settings()

    kw: dict[str, Any] = dict(future=True, pool_pre_ping=True)
    if settings.is_sqlite:
        # Handlers may run in threadpool workers
        kw["connect_args"] = {"check_same_thread": False}

    engine = create_engine(settings.database_url, **kw)

    if settings.is_sqlite:
        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_connection, _):
            cur = dbapi_connection.cursor()
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA busy_timeout=5000;")
            cur.execute("PRAGMA synchronous=FULL;")
            cur.close()

    return engine


@lru_cache
def get_session_factory() -> sessionmaker:
    """Get cached session factory bound to the engine."""
    return sessionmaker(
        get_engine(),
        class_=Session,
        expire_on_commit=False,
        autoflush=False,
    )


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide a transactional scope around a series of operations.

    Commits on success, rolls back on any exception.

    Yields:
        Session: Database session.
    """
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create all tables if they do not exist yet."""
    Base.metadata.create_all(get_engine())


def reset_engine() -> None:
    """Dispose the cached engine and forget cached factories.

    Used when the database URL changes (tests, reconfiguration).
    """
    if get_engine.cache_info().currsize:
        get_engine().dispose()
    get_engine.cache_clear()
    get_session_factory.cache_clear()


async def check_database_connection() -> dict[str, Any]:
    """Check if database connection is healthy.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
