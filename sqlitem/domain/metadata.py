"""Resolved mapping metadata for record types."""
from dataclasses import dataclass, field
from typing import Optional, Tuple

from sqlitem.domain.annotations import OnDeleteAction


@dataclass(frozen=True)
class ColumnMapping:
    """One mapped field of a record type."""

    database_column_name: str
    declared_field_name: str
    field_type: type
    is_primary_key: bool = False
    is_auto_generated: bool = False
    is_nullable: bool = True
    is_unique_column: bool = False
    is_indexed: bool = False
    is_unique_index: bool = False
    max_length: int = 0
    index_name: Optional[str] = None


@dataclass(frozen=True)
class ForeignKeyMapping:
    """A column referencing the primary key of another record type."""

    local_column: str
    referenced_type: type
    referenced_table: str
    referenced_column: str
    on_delete: OnDeleteAction = OnDeleteAction.NO_ACTION


@dataclass(frozen=True)
class IndexMapping:
    """A single or composite index on a table."""

    columns: Tuple[str, ...]
    unique: bool = False
    name: Optional[str] = None


@dataclass(frozen=True)
class EntityMetadata:
    """
    Table, column, key, foreign key and index metadata of one record type.

    Computed once per type by the mapper and never mutated afterwards.
    """

    record_type: type
    table_name: str
    columns: Tuple[ColumnMapping, ...]
    primary_key: Optional[ColumnMapping] = None
    foreign_keys: Tuple[ForeignKeyMapping, ...] = ()
    indexes: Tuple[IndexMapping, ...] = field(default=())

    @property
    def insertable_columns(self) -> Tuple[ColumnMapping, ...]:
        return tuple(c for c in self.columns if not c.is_auto_generated)

    @property
    def updatable_columns(self) -> Tuple[ColumnMapping, ...]:
        return tuple(
            c for c in self.columns if not c.is_primary_key and not c.is_auto_generated
        )

    @property
    def has_auto_generated_key(self) -> bool:
        return self.primary_key is not None and self.primary_key.is_auto_generated

    def column_by_name(self, name: str) -> Optional[ColumnMapping]:
        for c in self.columns:
            if c.database_column_name == name:
                return c
        return None

    def column_by_field(self, name: str) -> Optional[ColumnMapping]:
        for c in self.columns:
            if c.declared_field_name == name:
                return c
        return None
