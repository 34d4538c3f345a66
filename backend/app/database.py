"""Persistence collaborator: engine, sessions, schema migration and health check.

The engine is opened lazily from ``settings.DATABASE_URL`` so that importing
the application never requires a live database driver connection; tests swap
the session dependency for an SQLite one.
"""
import logging
from datetime import datetime
from typing import Iterator, Optional

import pytz
from sqlalchemy import BigInteger, Integer, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.types import DateTime, TypeDecorator

from app.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

# 64-bit keys; SQLite only autoincrements INTEGER PRIMARY KEY
Identifier = BigInteger().with_variant(Integer, "sqlite")

_engine: Optional[Engine] = None


class UTCDateTime(TypeDecorator):
    """Timezone-aware DateTime stored as UTC.

    SQLite drops offsets on the way out, so values are normalised to UTC on
    write and re-tagged as UTC on read.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime cannot be stored")
        return value.astimezone(pytz.utc)

    def process_result_value(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return pytz.utc.localize(value)
        return value.astimezone(pytz.utc)


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    """Build an engine for ``url``; SQLite gets foreign-key enforcement."""
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, pool_pre_ping=True)


def open_db(url: Optional[str] = None) -> Engine:
    """Open (or return the already opened) application engine."""
    global _engine
    if _engine is None:
        _engine = create_db_engine(url or settings.DATABASE_URL)
        SessionLocal.configure(bind=_engine)
        logger.info("Opened database engine for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def close_db() -> None:
    """Dispose of the connection pool."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        logger.info("Closed database engine")
        _engine = None


def migrate(engine: Optional[Engine] = None) -> None:
    """Create all tables. Deployed databases are migrated with Alembic instead."""
    # Models must be imported so Base.metadata knows about them
    from app.models import event as _event, participant as _participant, user as _user  # noqa: F401

    target = engine or open_db()
    Base.metadata.create_all(bind=target)
    logger.info("Database schema is up to date")


def health_check(db: Session) -> None:
    """Run a trivial query; raises on any connectivity problem."""
    db.execute(text("SELECT 1"))


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    open_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
