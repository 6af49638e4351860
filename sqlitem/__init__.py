"""
sqlitem - a small async object/relational mapping layer for SQLite.

Usage:
    @table("person")
    @dataclass
    class Person:
        id: int = column(primary_key=True, auto_increment=True, default=0)
        first_name: str = ""

    db = Database.from_settings(SqliteMSettings(database_url=url))
    await db.ensure_created(Person)
    async with await db.begin() as tx:
        await tx.repo(Person).insert(Person(first_name="Ada"))
        await tx.commit()
"""
from sqlitem.database import Database
from sqlitem.domain.annotations import (
    Index,
    OnDeleteAction,
    column,
    ignored,
    references,
    table,
)
from sqlitem.domain.errors import (
    ColumnCollisionError,
    CompletedScopeError,
    ConstraintViolation,
    InvalidArgumentError,
    MappingError,
    MissingPrimaryKeyError,
    ScopeDisposedError,
    SqliteMError,
    UnknownColumnError,
)
from sqlitem.domain.metadata import (
    ColumnMapping,
    EntityMetadata,
    ForeignKeyMapping,
    IndexMapping,
)
from sqlitem.domain.query import Condition, Operator, Query
from sqlitem.infrastructure.connection import SqliteConnectionFactory, create_engine
from sqlitem.infrastructure.dialect import SqliteDialect
from sqlitem.infrastructure.mapper import EntityMapper
from sqlitem.infrastructure.naming import (
    IdentityNameTranslator,
    NameTranslator,
    SnakeCaseNameTranslator,
    get_name_translator,
)
from sqlitem.infrastructure.repository import Repository, RepositoryFactory
from sqlitem.infrastructure.schema import SchemaBootstrapper
from sqlitem.infrastructure.sql_builder import SqlBuilder, Statement
from sqlitem.infrastructure.transaction_context import TransactionContext
from sqlitem.infrastructure.unit_of_work import UnitOfWork, UnitOfWorkFactory
from sqlitem.settings import (
    JournalMode,
    PragmaOptions,
    SqliteMSettings,
    SynchronousMode,
    get_settings,
)

__version__ = "0.1.0"

__all__ = [
    "Database",
    "Index",
    "OnDeleteAction",
    "column",
    "ignored",
    "references",
    "table",
    "ColumnCollisionError",
    "CompletedScopeError",
    "ConstraintViolation",
    "InvalidArgumentError",
    "MappingError",
    "MissingPrimaryKeyError",
    "ScopeDisposedError",
    "SqliteMError",
    "UnknownColumnError",
    "ColumnMapping",
    "EntityMetadata",
    "ForeignKeyMapping",
    "IndexMapping",
    "Condition",
    "Operator",
    "Query",
    "SqliteConnectionFactory",
    "create_engine",
    "SqliteDialect",
    "EntityMapper",
    "IdentityNameTranslator",
    "NameTranslator",
    "SnakeCaseNameTranslator",
    "get_name_translator",
    "Repository",
    "RepositoryFactory",
    "SchemaBootstrapper",
    "SqlBuilder",
    "Statement",
    "TransactionContext",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "JournalMode",
    "PragmaOptions",
    "SqliteMSettings",
    "SynchronousMode",
    "get_settings",
]
