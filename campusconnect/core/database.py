"""Database configuration for the event, account and profile tables.

The engine is configured the same way for every deployment; SQLite
connections additionally get two pragmas:

    - **WAL (Write-Ahead Logging)**: readers are not blocked while the
      admin forms or the session refresh job write.

    - **Foreign Keys**: disabled by default in SQLite. Registrations and
      auth tokens reference their parent rows, so the constraint is
      turned on for every connection.

Datetimes are stored as naive UTC and handed back timezone-aware through
the ``UTCDateTime`` column type, so comparisons against
``datetime.now(UTC)`` work whatever the backend.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, TypeDecorator
from sqlalchemy import event as sa_event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from campusconnect.core.config import settings


class UTCDateTime(TypeDecorator):
    """DateTime column that always returns timezone-aware UTC values."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _connect_args(database_url: str) -> dict:
    # FastAPI may hand a connection to a different thread than the one
    # that opened it.
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def build_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine, registering the SQLite pragmas when relevant."""
    engine = create_engine(
        database_url,
        connect_args=_connect_args(database_url),
        echo=echo,
        **kwargs,
    )
    if database_url.startswith("sqlite"):
        sa_event.listen(engine, "connect", set_sqlite_pragma)
    return engine


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    These settings are connection-level, not database-level, so they must
    be set each time a new connection is established from the pool.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.database_url, echo=settings.debug)


def create_db_and_tables(bind: Engine | None = None):
    """Create all database tables."""
    # Import models so their tables are registered on the metadata
    import campusconnect.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
