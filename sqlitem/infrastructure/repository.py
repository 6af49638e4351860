"""Generic SQLite repository for dataclass record types."""
import dataclasses
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlitem.domain.errors import InvalidArgumentError, MissingPrimaryKeyError
from sqlitem.domain.metadata import ColumnMapping
from sqlitem.domain.query import Query
from sqlitem.infrastructure.dialect import SqliteDialect
from sqlitem.infrastructure.mapper import EntityMapper
from sqlitem.infrastructure.naming import NameTranslator
from sqlitem.infrastructure.sql_builder import SqlBuilder, Statement, parameter_name
from sqlitem.infrastructure.unit_of_work import UnitOfWork
from sqlitem.infrastructure.values import from_db, to_db
from sqlitem.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


class Repository(Generic[T]):
    """
    CRUD and query access to one record type inside one Unit of Work.

    Every call checks the Unit of Work first, so nothing is sent to the
    database once it has been committed, rolled back or disposed.
    """

    def __init__(
        self,
        record_type: Type[T],
        uow: UnitOfWork,
        mapper: EntityMapper,
        builder: SqlBuilder,
        dialect: Optional[SqliteDialect] = None,
        translator: Optional[NameTranslator] = None,
    ) -> None:
        """Initialize repository.

        Args:
            record_type: Dataclass record type
            uow: Owning Unit of Work
            mapper: Metadata resolver
            builder: SQL builder
            dialect: SQL dialect (SQLite by default)
            translator: Name translator (the mapper's by default)
        """
        self.record_type = record_type
        self.uow = uow
        self.mapper = mapper
        self.builder = builder
        self.dialect = dialect or builder.dialect
        self.translator = translator or mapper.translator

    async def insert(self, record: T) -> int:
        """Insert a record.

        With an auto-generated key the new key is written back onto the
        record.

        Args:
            record: Record to insert

        Returns:
            Generated key, or 0 when the type has no auto-generated key
        """
        self.uow.ensure_active()
        self._check_record(record)
        statement = self.builder.build_insert(self.record_type)
        await self._execute(statement, self._bind(record, statement.columns))

        metadata = self.mapper.resolve(self.record_type)
        if not metadata.has_auto_generated_key:
            return 0

        result = await self.uow.execute(self.dialect.last_insert_id_sql)
        key = int(result.scalar_one())
        setattr(record, metadata.primary_key.declared_field_name, key)
        return key

    async def update(self, record: T) -> int:
        """Update a record by its primary key.

        Returns:
            Number of affected rows

        Raises:
            MissingPrimaryKeyError: If the type has no primary key
        """
        self.uow.ensure_active()
        self._check_record(record)
        statement = self.builder.build_update(self.record_type)
        result = await self._execute(statement, self._bind(record, statement.columns))
        return result.rowcount

    async def delete(self, key: Any) -> int:
        """Delete a row by primary key value.

        Returns:
            Number of affected rows
        """
        self.uow.ensure_active()
        statement = self.builder.build_delete(self.record_type)
        result = await self._execute(statement, self._bind_key(key))
        return result.rowcount

    async def find_by_key(self, key: Any) -> Optional[T]:
        """Retrieve one record by primary key value.

        Returns:
            Record if found, None otherwise
        """
        self.uow.ensure_active()
        statement = self.builder.build_select_by_key(self.record_type)
        result = await self._execute(statement, self._bind_key(key))
        row = result.first()
        if row is None:
            return None
        return self._materialize(statement.columns, row)

    async def find_all(self) -> List[T]:
        self.uow.ensure_active()
        statement = self.builder.build_select_all(self.record_type)
        result = await self._execute(statement)
        return [self._materialize(statement.columns, row) for row in result.all()]

    async def query(self, query: Query) -> List[T]:
        """Run a filter/sort query.

        Args:
            query: Conditions and optional sort column

        Returns:
            Matching records in database (or requested) order

        Raises:
            UnknownColumnError: If a column token matches no mapped column
        """
        self.uow.ensure_active()
        if query is None:
            raise InvalidArgumentError("Query must not be None.")
        statement = self.builder.build_query(self.record_type, query)
        result = await self._execute(statement, statement.parameters)
        return [self._materialize(statement.columns, row) for row in result.all()]

    # Helpers

    async def _execute(self, statement: Statement, parameters: Optional[Dict[str, Any]] = None):
        if parameters:
            logger.debug(f"parameters: {parameters}")
        return await self.uow.execute(statement.sql, parameters)

    def _check_record(self, record: Any) -> None:
        if record is None:
            raise InvalidArgumentError("Record must not be None.")
        if not isinstance(record, self.record_type):
            raise InvalidArgumentError(
                f"Expected {self.record_type.__name__}, got {type(record).__name__}"
            )

    def _bind(self, record: T, columns: Sequence[ColumnMapping]) -> Dict[str, Any]:
        return {
            parameter_name(i): to_db(getattr(record, c.declared_field_name))
            for i, c in enumerate(columns)
        }

    def _bind_key(self, key: Any) -> Dict[str, Any]:
        if key is None:
            raise InvalidArgumentError("Key must not be None.")
        key_column = self.mapper.primary_key(self.record_type)
        if key_column is None:
            raise MissingPrimaryKeyError(self.record_type)
        return {parameter_name(0): to_db(key)}

    def _materialize(self, columns: Sequence[ColumnMapping], row: Sequence[Any]) -> T:
        init_fields = {f.name for f in dataclasses.fields(self.record_type) if f.init}
        kwargs = {}
        late = {}
        for column, raw in zip(columns, row):
            value = from_db(column.field_type, raw)
            if column.declared_field_name in init_fields:
                kwargs[column.declared_field_name] = value
            else:
                late[column.declared_field_name] = value

        record = self.record_type(**kwargs)
        for name, value in late.items():
            # object.__setattr__ also works for frozen dataclasses
            object.__setattr__(record, name, value)
        return record


class RepositoryFactory:
    """Creates repositories sharing one mapper, builder and dialect."""

    def __init__(
        self,
        mapper: Optional[EntityMapper] = None,
        builder: Optional[SqlBuilder] = None,
        dialect: Optional[SqliteDialect] = None,
        translator: Optional[NameTranslator] = None,
    ) -> None:
        self.mapper = mapper or (builder.mapper if builder else EntityMapper(translator))
        self.dialect = dialect or (builder.dialect if builder else SqliteDialect())
        self.builder = builder or SqlBuilder(self.mapper, self.dialect)
        self.translator = translator or self.mapper.translator

    def create(self, record_type: Type[T], uow: UnitOfWork) -> Repository[T]:
        return Repository(
            record_type, uow, self.mapper, self.builder, self.dialect, self.translator
        )
