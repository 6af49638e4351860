"""
SQL statement builder.

Turns entity metadata into exact SQL text. Every statement ends with exactly
one ``;`` and every identifier goes through the dialect's quoting.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlitem.domain.annotations import OnDeleteAction
from sqlitem.domain.errors import MappingError, MissingPrimaryKeyError
from sqlitem.domain.metadata import ColumnMapping, EntityMetadata, ForeignKeyMapping
from sqlitem.domain.query import Operator, Query, resolve_column
from sqlitem.infrastructure.dialect import SqliteDialect
from sqlitem.infrastructure.mapper import EntityMapper
from sqlitem.infrastructure.values import to_db
from sqlitem.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class Statement:
    """SQL text plus the columns it uses, in bind (or select) order."""

    sql: str
    columns: Tuple[ColumnMapping, ...] = ()
    parameters: Dict[str, Any] = field(default_factory=dict)


def parameter_name(index: int) -> str:
    """
    Bind parameter name for the statement column at ``index``.

    Column names may contain characters that are not valid in a named
    parameter, so parameters are numbered instead.
    """
    return f"p{index}"


def sql_type(column: ColumnMapping) -> str:
    """
    Map a column's declared type to an SQLite type affinity.

    int/bool -> INTEGER, float/Decimal -> REAL, date/time/str -> TEXT
    (VARCHAR(n) for str with a max length; SQLite does not enforce it).
    """
    t = column.field_type
    if isinstance(t, type):
        if issubclass(t, (bool, int)):
            return "INTEGER"
        if issubclass(t, (float, Decimal)):
            return "REAL"
        if issubclass(t, (datetime, date, time)):
            return "TEXT"
        if issubclass(t, str):
            return f"VARCHAR({column.max_length})" if column.max_length > 0 else "TEXT"
    return "TEXT"


_ON_DELETE_SQL = {
    OnDeleteAction.NO_ACTION: "",
    OnDeleteAction.RESTRICT: " ON DELETE RESTRICT",
    OnDeleteAction.CASCADE: " ON DELETE CASCADE",
    OnDeleteAction.SET_NULL: " ON DELETE SET NULL",
    OnDeleteAction.SET_DEFAULT: " ON DELETE SET DEFAULT",
}


class SqlBuilder:
    """Builds DDL and DML text from mapper metadata."""

    def __init__(self, mapper: EntityMapper, dialect: Optional[SqliteDialect] = None):
        self.mapper = mapper
        self.dialect = dialect or SqliteDialect()

    # DML

    def build_insert(self, record_type: type) -> Statement:
        meta = self._metadata_with_columns(record_type)
        cols = meta.insertable_columns
        table = self._q(meta.table_name)
        if not cols:
            return Statement(f"INSERT INTO {table} DEFAULT VALUES;")

        col_list = ", ".join(self._q(c.database_column_name) for c in cols)
        param_list = ", ".join(self._parameter(i) for i in range(len(cols)))
        return Statement(f"INSERT INTO {table} ({col_list}) VALUES ({param_list});", cols)

    def build_update(self, record_type: type) -> Statement:
        meta = self._metadata_with_columns(record_type)
        key = self._require_key(meta)
        cols = meta.updatable_columns
        if not cols:
            raise MappingError(
                f"{record_type.__name__} has no updatable columns", record_type
            )

        sets = ", ".join(
            f"{self._q(c.database_column_name)} = {self._parameter(i)}"
            for i, c in enumerate(cols)
        )
        where = self._key_predicate(key, len(cols))
        return Statement(
            f"UPDATE {self._q(meta.table_name)} SET {sets} WHERE {where};",
            cols + (key,),
        )

    def build_delete(self, record_type: type) -> Statement:
        meta = self._metadata_with_columns(record_type)
        key = self._require_key(meta)
        return Statement(
            f"DELETE FROM {self._q(meta.table_name)} WHERE {self._key_predicate(key)};",
            (key,),
        )

    def build_select_by_key(self, record_type: type) -> Statement:
        meta = self._metadata_with_columns(record_type)
        key = self._require_key(meta)
        return Statement(
            f"SELECT {self._column_list(meta)} FROM {self._q(meta.table_name)} "
            f"WHERE {self._key_predicate(key)} LIMIT 1;",
            meta.columns,
        )

    def build_select_all(self, record_type: type) -> Statement:
        meta = self._metadata_with_columns(record_type)
        return Statement(
            f"SELECT {self._column_list(meta)} FROM {self._q(meta.table_name)};",
            meta.columns,
        )

    def build_query(self, record_type: type, query: Query) -> Statement:
        """
        Render a Query against a record type.

        Column tokens are resolved before any SQL is produced, so an unknown
        column never reaches the database.

        Returns:
            Statement with selected columns and bound parameters
        """
        meta = self._metadata_with_columns(record_type)
        translator = self.mapper.translator

        predicates: List[str] = []
        params: Dict[str, Any] = {}
        for i, cond in enumerate(query.conditions):
            target = self._q(resolve_column(meta, cond.column, translator).database_column_name)
            if cond.operator is Operator.EQ and cond.value is None:
                predicates.append(f"{target} IS NULL")
                continue
            name = parameter_name(i)
            predicates.append(f"{target} {cond.operator.value} {self.dialect.parameter(name)}")
            params[name] = to_db(cond.value)

        order = ""
        if query.order_by_column:
            sort = resolve_column(meta, query.order_by_column, translator)
            direction = "DESC" if query.order_by_descending else "ASC"
            order = f" ORDER BY {self._q(sort.database_column_name)} {direction}"

        where = f" WHERE {' AND '.join(predicates)}" if predicates else ""
        sql = f"SELECT {self._column_list(meta)} FROM {self._q(meta.table_name)}{where}{order};"
        return Statement(sql, meta.columns, params)

    # DDL

    def build_create_table(self, record_type: type) -> str:
        meta = self._metadata_with_columns(record_type)
        defs = [self._column_definition(c) for c in meta.columns]
        defs.extend(self._foreign_key_clause(fk) for fk in meta.foreign_keys)
        sql = f"CREATE TABLE IF NOT EXISTS {self._q(meta.table_name)} ({', '.join(defs)});"
        logger.debug(sql)
        return sql

    def build_create_indexes(self, record_type: type) -> List[str]:
        meta = self.mapper.resolve(record_type)
        out = []
        for index in meta.indexes:
            unique = "UNIQUE " if index.unique else ""
            cols = ", ".join(self._q(c) for c in index.columns)
            out.append(
                f"CREATE {unique}INDEX IF NOT EXISTS {self._q(index.name)} "
                f"ON {self._q(meta.table_name)} ({cols});"
            )
        return out

    # Helpers

    def _q(self, name: str) -> str:
        return self.dialect.quote_identifier(name)

    def _metadata_with_columns(self, record_type: type) -> EntityMetadata:
        meta = self.mapper.resolve(record_type)
        if not meta.columns:
            raise MappingError(
                f"No mapped columns found for {record_type.__name__}", record_type
            )
        return meta

    def _require_key(self, meta: EntityMetadata) -> ColumnMapping:
        if meta.primary_key is None:
            raise MissingPrimaryKeyError(meta.record_type)
        return meta.primary_key

    def _parameter(self, index: int) -> str:
        return self.dialect.parameter(parameter_name(index))

    def _key_predicate(self, key: ColumnMapping, index: int = 0) -> str:
        return f"{self._q(key.database_column_name)} = {self._parameter(index)}"

    def _column_list(self, meta: EntityMetadata) -> str:
        return ", ".join(self._q(c.database_column_name) for c in meta.columns)

    def _column_definition(self, c: ColumnMapping) -> str:
        parts = [self._q(c.database_column_name), sql_type(c)]
        if c.is_primary_key:
            parts.append("PRIMARY KEY")
        if c.is_auto_generated:
            parts.append("AUTOINCREMENT")
        if not c.is_nullable and not c.is_primary_key:
            parts.append("NOT NULL")
        if c.is_unique_column and not c.is_primary_key:
            parts.append("UNIQUE")
        return " ".join(parts)

    def _foreign_key_clause(self, fk: ForeignKeyMapping) -> str:
        return (
            f"FOREIGN KEY ({self._q(fk.local_column)}) "
            f"REFERENCES {self._q(fk.referenced_table)} "
            f"({self._q(fk.referenced_column)}){_ON_DELETE_SQL[fk.on_delete]}"
        )
