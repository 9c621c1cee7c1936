from datetime import datetime, timezone
from typing import AsyncGenerator, Awaitable, Callable, TypeVar
import logging
import uuid

from sqlalchemy import Column, event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings
from app.core.types import UTCDateTime

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Postgres SQLSTATEs for serialization failure and deadlock
RETRYABLE_SQLSTATES = {"40001", "40P01"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _BaseColumns:
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)


Base = declarative_base(cls=_BaseColumns)


def enable_immediate_transactions(async_engine: AsyncEngine) -> None:
    """Make SQLite take its write lock when a transaction begins"""
    # SQLite ignores FOR UPDATE and pysqlite defers BEGIN until the first write,
    # so reads inside a unit would otherwise run unlocked.
    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG, future=True)
if engine.dialect.name == "sqlite":
    enable_immediate_transactions(engine)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session"""
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """Create all tables"""
    # Import models so they are registered on Base.metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def is_retryable_conflict(exc: DBAPIError) -> bool:
    """True when the store aborted the transaction because of a concurrent writer"""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    # SQLite reports writer contention as "database is locked"
    return "database is locked" in str(orig or exc)


async def run_in_transaction(
    db: AsyncSession,
    unit: Callable[[], Awaitable[T]],
    attempts: int = None,
) -> T:
    """Run a read-modify-write unit as one transaction, retrying store conflicts.

    The unit must do all of its reads inside the call so a retry re-reads
    fresh state. Domain exceptions roll back and propagate untouched.
    """
    attempts = attempts or settings.STORE_RETRY_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            result = await unit()
            await db.commit()
            return result
        except DBAPIError as e:
            await db.rollback()
            if attempt < attempts and is_retryable_conflict(e):
                logger.warning(f"Store conflict on attempt {attempt}/{attempts}, retrying: {e}")
                continue
            raise
        except Exception:
            await db.rollback()
            raise
