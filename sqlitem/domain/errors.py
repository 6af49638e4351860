"""
Error taxonomy.

Metadata and SQL-construction problems are raised eagerly, before any
statement reaches the database. Engine failures (constraint violations,
lock contention) are propagated unchanged.
"""
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError


class SqliteMError(Exception):
    """Base class for all sqlitem errors."""
    pass


class MappingError(SqliteMError):
    """Raised when a record type's metadata is missing or ambiguous."""

    def __init__(self, message: str, record_type: Optional[type] = None):
        super().__init__(message)
        self.record_type = record_type


class ColumnCollisionError(MappingError):
    """Raised when several fields translate to the same column name."""

    def __init__(self, record_type: type, column: str, fields: Iterable[str]):
        self.column = column
        self.fields = tuple(fields)
        super().__init__(
            f"Fields {', '.join(self.fields)} of {record_type.__name__} "
            f"all map to column '{column}'",
            record_type,
        )


class MissingPrimaryKeyError(MappingError):
    """Raised when a key-based operation targets a type without primary key."""

    def __init__(self, record_type: type):
        super().__init__(
            f"PRIMARY KEY is missing on {record_type.__name__}", record_type
        )


class InvalidArgumentError(SqliteMError, ValueError):
    """Raised for malformed arguments, e.g. NULL with a relational operator."""
    pass


class UnknownColumnError(InvalidArgumentError):
    """Raised when a query token resolves to no mapped column."""

    def __init__(self, column: str, record_type: type):
        self.column = column
        self.record_type = record_type
        super().__init__(
            f"Unknown column '{column}' for entity {record_type.__name__}"
        )


class CompletedScopeError(SqliteMError):
    """Raised when a scope is used after commit, rollback or disposal."""
    pass


class ScopeDisposedError(CompletedScopeError):
    """Raised when a disposed scope is used."""
    pass


# Engine-level constraint failures (UNIQUE, NOT NULL, FOREIGN KEY) surface
# as SQLAlchemy's wrapper around sqlite3.IntegrityError, unmodified.
ConstraintViolation = IntegrityError
