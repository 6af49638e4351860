"""
Database wiring.

Builds the connection provider, mapper, SQL builder and factories from
settings, and offers the common entry points on one object.
"""
from typing import Optional

from sqlitem.infrastructure.connection import SqliteConnectionFactory
from sqlitem.infrastructure.dialect import SqliteDialect
from sqlitem.infrastructure.mapper import EntityMapper
from sqlitem.infrastructure.naming import get_name_translator
from sqlitem.infrastructure.repository import RepositoryFactory
from sqlitem.infrastructure.schema import SchemaBootstrapper
from sqlitem.infrastructure.sql_builder import SqlBuilder
from sqlitem.infrastructure.transaction_context import TransactionContext
from sqlitem.infrastructure.unit_of_work import UnitOfWork, UnitOfWorkFactory
from sqlitem.logging import configure_logging, get_logger
from sqlitem.settings import SqliteMSettings, get_settings


logger = get_logger(__name__)


class Database:
    """
    Entry point bundling one engine with its factories.

    Usage:
        db = Database.from_settings(SqliteMSettings(database_url=url))
        await db.ensure_created(Person, Order)
        async with await db.unit_of_work() as uow:
            await db.repositories.create(Person, uow).insert(person)
            await uow.commit()
        await db.close()
    """

    def __init__(self, connection_factory: SqliteConnectionFactory):
        self.settings = connection_factory.settings
        configure_logging(self.settings.log_level)
        self.connection_factory = connection_factory
        self.dialect = SqliteDialect()
        self.mapper = EntityMapper(get_name_translator(self.settings.name_style))
        self.builder = SqlBuilder(self.mapper, self.dialect)
        self.repositories = RepositoryFactory(self.mapper, self.builder, self.dialect)
        self.units_of_work = UnitOfWorkFactory(connection_factory, self.settings.pragmas)
        self.schema = SchemaBootstrapper(self.builder)

    @classmethod
    def from_settings(cls, settings: Optional[SqliteMSettings] = None) -> "Database":
        return cls(SqliteConnectionFactory(settings or get_settings()))

    @classmethod
    def from_url(cls, database_url: str, **overrides) -> "Database":
        return cls(SqliteConnectionFactory.for_url(database_url, **overrides))

    async def unit_of_work(self) -> UnitOfWork:
        return await self.units_of_work.create()

    async def begin(self) -> TransactionContext:
        return await TransactionContext.begin(self.units_of_work, self.repositories)

    async def ensure_created(self, *record_types: type) -> None:
        """Create tables and indexes for the given types in one committed transaction."""
        logger.info("Initializing database schema...")
        await self.schema.ensure_created_in_new_scope(self.units_of_work, *record_types)

    async def close(self) -> None:
        await self.connection_factory.dispose()
        logger.info("✅ Database connections closed")
