"""
Database connection provider.

Wraps one SQLAlchemy async engine (``sqlite+aiosqlite``) and hands out
connection handles that are not yet opened. Opening, transaction control
and closing belong to the Unit of Work.
"""
from typing import Optional, Protocol

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from sqlitem.logging import get_logger
from sqlitem.settings import SqliteMSettings, get_settings


logger = get_logger(__name__)


class ConnectionFactory(Protocol):
    def create(self) -> AsyncConnection: ...


def _disable_driver_transactions(dbapi_connection, connection_record):
    # Stop the driver from emitting BEGIN/COMMIT on its own. The Unit of
    # Work issues BEGIN itself, after the PRAGMAs (foreign_keys is a no-op
    # inside a transaction).
    dbapi_connection.isolation_level = None


def create_engine(settings: Optional[SqliteMSettings] = None) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    Args:
        settings: sqlitem settings (global settings by default)

    Returns:
        Configured async engine
    """
    settings = settings or get_settings()
    logger.info(f"Creating database engine: {settings.database_url}")

    kwargs = {}
    if settings.is_memory:
        # One shared connection, otherwise every connection sees its own
        # empty in-memory database.
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_async_engine(settings.database_url, echo=settings.echo_sql, **kwargs)
    event.listen(engine.sync_engine, "connect", _disable_driver_transactions)
    return engine


class SqliteConnectionFactory:
    """
    Connection provider backed by one async engine.

    Usage:
        factory = SqliteConnectionFactory(SqliteMSettings(database_url=url))
        conn = factory.create()      # not yet opened
        await conn.start()
        ...
        await conn.close()
        await factory.dispose()
    """

    def __init__(
        self,
        settings: Optional[SqliteMSettings] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        self.settings = settings or get_settings()
        self.engine = engine or create_engine(self.settings)

    @classmethod
    def for_url(cls, database_url: str, **overrides) -> "SqliteConnectionFactory":
        return cls(SqliteMSettings(database_url=database_url, **overrides))

    def create(self) -> AsyncConnection:
        return self.engine.connect()

    async def dispose(self) -> None:
        """Close pooled connections."""
        logger.info("Closing database connections...")
        await self.engine.dispose()
