"""
Entity metadata resolver.

Reflects over a dataclass record type and produces its table, column,
primary key, foreign key and index metadata.
"""
import dataclasses
import enum
import sys
import types
import typing
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlitem.domain.annotations import (
    COLUMN_KEY,
    IGNORE_KEY,
    ColumnSpec,
    Reference,
    table_spec,
)
from sqlitem.domain.errors import ColumnCollisionError, MappingError
from sqlitem.domain.metadata import (
    ColumnMapping,
    EntityMetadata,
    ForeignKeyMapping,
    IndexMapping,
)
from sqlitem.infrastructure.naming import (
    IdentityNameTranslator,
    NameTranslator,
    to_snake_case,
)
from sqlitem.logging import get_logger


logger = get_logger(__name__)

VALUE_TYPES = (bool, int, float, Decimal, datetime, date, time, enum.Enum)
_EMPTY_SPEC = ColumnSpec()


def unwrap_optional(tp: Any) -> Tuple[Any, bool]:
    """
    Strip ``Optional[...]`` / ``X | None`` from a type.

    Returns:
        Tuple of (inner type, whether None was part of the union)
    """
    origin = typing.get_origin(tp)
    union_types = (typing.Union, getattr(types, "UnionType", typing.Union))
    if origin in union_types:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        has_none = len(args) != len(typing.get_args(tp))
        if len(args) == 1:
            return args[0], has_none
        return tp, has_none
    return tp, False


def is_value_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, VALUE_TYPES)


def is_integer_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, int) and not issubclass(tp, bool)


class EntityMapper:
    """
    Resolves and caches EntityMetadata per record type.

    Usage:
        mapper = EntityMapper(SnakeCaseNameTranslator())
        meta = mapper.resolve(Person)
        meta.table_name          # "person"
        meta.primary_key.database_column_name
    """

    def __init__(self, translator: Optional[NameTranslator] = None):
        """
        Initialize mapper.

        Args:
            translator: Name translator for undeclared names (identity by default)
        """
        self.translator = translator or IdentityNameTranslator()
        self._cache: Dict[type, EntityMetadata] = {}

    def resolve(self, record_type: type) -> EntityMetadata:
        """
        Resolve metadata for a record type.

        Args:
            record_type: Dataclass record type

        Returns:
            Immutable EntityMetadata

        Raises:
            MappingError: If metadata is missing or ambiguous
        """
        cached = self._cache.get(record_type)
        if cached is not None:
            return cached

        table_name = self.table_name(record_type)
        columns = self._columns(record_type)
        primary_key = next((c for c in columns if c.is_primary_key), None)
        foreign_keys = self._foreign_keys(record_type, columns)
        indexes = self._indexes(record_type, table_name, columns)

        metadata = EntityMetadata(
            record_type=record_type,
            table_name=table_name,
            columns=tuple(columns),
            primary_key=primary_key,
            foreign_keys=tuple(foreign_keys),
            indexes=tuple(indexes),
        )
        logger.debug(
            f"Resolved {record_type.__name__} -> {table_name} "
            f"({len(columns)} columns, {len(foreign_keys)} foreign keys, "
            f"{len(indexes)} indexes)"
        )
        self._cache[record_type] = metadata
        return metadata

    # Convenience accessors

    def table_name(self, record_type: type) -> str:
        spec = table_spec(record_type)
        if spec.name is not None:
            name = spec.name
        else:
            name = self.translator.table(record_type.__name__)
        if not name or not name.strip():
            raise MappingError(
                f"Table name must not be empty on type {record_type.__name__}",
                record_type,
            )
        return name

    def columns(self, record_type: type) -> Tuple[ColumnMapping, ...]:
        return self.resolve(record_type).columns

    def primary_key(self, record_type: type) -> Optional[ColumnMapping]:
        return self.resolve(record_type).primary_key

    def foreign_keys(self, record_type: type) -> Tuple[ForeignKeyMapping, ...]:
        return self.resolve(record_type).foreign_keys

    def indexes(self, record_type: type) -> Tuple[IndexMapping, ...]:
        return self.resolve(record_type).indexes

    # Resolution steps

    def _mapped_fields(self, record_type: type) -> List[dataclasses.Field]:
        if not dataclasses.is_dataclass(record_type) or not isinstance(record_type, type):
            raise MappingError(
                f"{getattr(record_type, '__name__', record_type)!r} is not a dataclass type",
                record_type,
            )
        return [
            f
            for f in dataclasses.fields(record_type)
            if not f.name.startswith("_") and not f.metadata.get(IGNORE_KEY)
        ]

    def _columns(self, record_type: type) -> List[ColumnMapping]:
        fields = self._mapped_fields(record_type)
        hints = _type_hints(record_type, fields)
        type_name = record_type.__name__

        declared_keys = [f for f in fields if _spec(f).primary_key]
        if len(declared_keys) > 1:
            names = ", ".join(f.name for f in declared_keys)
            raise MappingError(
                f"{type_name} declares more than one primary key ({names}); "
                "composite keys are not supported",
                record_type,
            )
        if declared_keys:
            key_field = declared_keys[0].name
        else:
            key_field = _conventional_key(type_name, [f.name for f in fields])

        params = getattr(record_type, "__dataclass_params__", None)
        frozen = bool(params and params.frozen)

        columns = []
        for f in fields:
            spec = _spec(f)
            if spec.name is not None and not spec.name.strip():
                raise MappingError(
                    f"Column name must not be empty on field {type_name}.{f.name}",
                    record_type,
                )
            column_name = spec.name or self.translator.column(f.name)
            declared = hints[f.name]
            field_type, optional = unwrap_optional(declared)
            is_key = f.name == key_field

            if spec.auto_increment:
                if not is_key or not is_integer_type(field_type):
                    raise MappingError(
                        f"{type_name}.{f.name}: auto_increment requires an "
                        "integer primary key",
                        record_type,
                    )
                if frozen:
                    raise MappingError(
                        f"{type_name} is frozen; the generated key cannot be "
                        f"written back to {f.name}",
                        record_type,
                    )

            if is_key:
                nullable = False
            elif spec.nullable is not None:
                nullable = spec.nullable
            else:
                nullable = optional or not is_value_type(field_type)

            columns.append(
                ColumnMapping(
                    database_column_name=column_name,
                    declared_field_name=f.name,
                    field_type=field_type,
                    is_primary_key=is_key,
                    is_auto_generated=spec.auto_increment,
                    is_nullable=nullable,
                    is_unique_column=spec.unique,
                    is_indexed=spec.index,
                    is_unique_index=spec.unique_index,
                    max_length=spec.max_length,
                    index_name=spec.index_name,
                )
            )

        _check_collisions(record_type, columns)
        return columns

    def _foreign_keys(
        self, record_type: type, columns: List[ColumnMapping]
    ) -> List[ForeignKeyMapping]:
        by_field = {c.declared_field_name: c for c in columns}
        out = []
        for f in self._mapped_fields(record_type):
            ref: Optional[Reference] = _spec(f).references
            if ref is None:
                continue
            # Self references reuse the columns at hand; other types are
            # resolved column-wise only, so reference cycles cannot recurse.
            if ref.record_type is record_type:
                target_columns = columns
            else:
                target_columns = self._columns(ref.record_type)
            out.append(
                ForeignKeyMapping(
                    local_column=by_field[f.name].database_column_name,
                    referenced_type=ref.record_type,
                    referenced_table=self.table_name(ref.record_type),
                    referenced_column=_referenced_column(ref, target_columns),
                    on_delete=ref.on_delete,
                )
            )
        return out

    def _indexes(
        self, record_type: type, table_name: str, columns: List[ColumnMapping]
    ) -> List[IndexMapping]:
        out = []
        for c in columns:
            if c.is_indexed:
                out.append(
                    IndexMapping(
                        columns=(c.database_column_name,),
                        unique=c.is_unique_index,
                        name=c.index_name or derive_index_name(table_name, [c.database_column_name]),
                    )
                )

        by_column = {c.database_column_name: c for c in columns}
        by_field = {c.declared_field_name: c for c in columns}
        for declared in table_spec(record_type).indexes:
            if not declared.columns:
                raise MappingError(
                    f"Index on {record_type.__name__} must name at least one column",
                    record_type,
                )
            names = []
            for token in declared.columns:
                mapped = by_field.get(token) or by_column.get(token)
                if mapped is None:
                    raise MappingError(
                        f"Index column '{token}' is not a mapped field of "
                        f"{record_type.__name__}",
                        record_type,
                    )
                names.append(mapped.database_column_name)
            out.append(
                IndexMapping(
                    columns=tuple(names),
                    unique=declared.unique,
                    name=declared.name or derive_index_name(table_name, names),
                )
            )

        seen = set()
        for index in out:
            key = index.name.lower()
            if key in seen:
                raise MappingError(
                    f"Duplicate index name '{index.name}' on {record_type.__name__}",
                    record_type,
                )
            seen.add(key)
        return out


def derive_index_name(table_name: str, column_names) -> str:
    return "_".join(["ix", table_name, *column_names])


def _spec(f: dataclasses.Field) -> ColumnSpec:
    return f.metadata.get(COLUMN_KEY, _EMPTY_SPEC)


def _type_hints(record_type: type, fields: List[dataclasses.Field]) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError):
        pass

    # Some annotation does not resolve (e.g. a TYPE_CHECKING-only import on an
    # ignored field). Resolve the mapped fields one by one; those must succeed.
    module = sys.modules.get(record_type.__module__)
    globalns = vars(module) if module is not None else {}
    hints = {}
    for f in fields:
        holder = types.SimpleNamespace(__annotations__={f.name: f.type})
        try:
            hints.update(typing.get_type_hints(holder, globalns=globalns))
        except (NameError, TypeError) as e:
            raise MappingError(
                f"Cannot resolve type hint of {record_type.__name__}.{f.name}: {e}",
                record_type,
            ) from e
    return hints


def _conventional_key(type_name: str, field_names: List[str]) -> Optional[str]:
    candidates = ("id", "Id", f"{type_name}Id", f"{to_snake_case(type_name)}_id")
    for candidate in candidates:
        if candidate in field_names:
            return candidate
    return None


def _referenced_column(ref: Reference, target_columns: List[ColumnMapping]) -> str:
    if ref.column is None:
        key = next((c for c in target_columns if c.is_primary_key), None)
        if key is None:
            raise MappingError(
                f"Referenced type {ref.record_type.__name__} has no primary key; "
                "name the referenced column explicitly",
                ref.record_type,
            )
        return key.database_column_name
    for c in target_columns:
        if c.declared_field_name == ref.column:
            return c.database_column_name
    # Not validated further; a wrong name surfaces as an engine error
    return ref.column


def _check_collisions(record_type: type, columns: List[ColumnMapping]) -> None:
    groups: Dict[str, List[ColumnMapping]] = {}
    for c in columns:
        groups.setdefault(c.database_column_name.lower(), []).append(c)
    for same in groups.values():
        if len(same) > 1:
            raise ColumnCollisionError(
                record_type,
                same[0].database_column_name,
                [c.declared_field_name for c in same],
            )
