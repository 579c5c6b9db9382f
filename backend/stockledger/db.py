import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from .config import get_settings


logger = logging.getLogger(__name__)

settings = get_settings()


def serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """
    SQLite has no row locks and ignores FOR UPDATE. Take the database write
    lock when the transaction starts so concurrent ledger writers queue up
    instead of interleaving their reads. This also keeps SAVEPOINT usable
    under the pysqlite/aiosqlite driver.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_for(url: str) -> AsyncEngine:
    engine = create_async_engine(url, echo=False, future=True)
    if engine.dialect.name == "sqlite":
        serialize_sqlite_writers(engine)
    return engine


def _create_engine():
    try:
        return create_engine_for(settings.database_url)
    except ModuleNotFoundError as e:
        if "asyncpg" in str(e):
            # Fallback for environments without asyncpg (e.g., local tests)
            fallback_url = "sqlite+aiosqlite:///:memory:"
            logger.warning("asyncpg not installed, falling back to %s", fallback_url)
            return create_engine_for(fallback_url)
        raise

engine = _create_engine()
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


class Base(DeclarativeBase):
    pass


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session
