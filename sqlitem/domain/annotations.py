"""
Declarative annotations for record types.

Record types are plain dataclasses. Table-level metadata is attached with the
``@table`` decorator, column-level metadata travels in ``dataclasses.field``
metadata via ``column()`` / ``ignored()``.

Usage:
    @table("orders", indexes=[Index("person_id", "total")])
    @dataclass
    class Order:
        id: int = column(primary_key=True, auto_increment=True, default=0)
        person_id: int = column(
            references=references(Person, on_delete=OnDeleteAction.CASCADE),
            default=0,
        )
        total: Decimal = column(nullable=False, default=Decimal("0"))
        note: Optional[str] = column(max_length=200, default=None)
        person: Optional[Person] = ignored(default=None)
"""
from dataclasses import MISSING, dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Type, TypeVar


TABLE_ATTR = "__sqlitem_table__"
COLUMN_KEY = "sqlitem.column"
IGNORE_KEY = "sqlitem.ignore"

T = TypeVar("T")


class OnDeleteAction(str, Enum):
    """Referential action applied when the referenced row is deleted."""

    NO_ACTION = "NO ACTION"
    RESTRICT = "RESTRICT"
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"


@dataclass(frozen=True)
class Index:
    """Type-level (possibly composite) index declaration."""

    columns: Tuple[str, ...]
    unique: bool = False
    name: Optional[str] = None

    def __init__(self, *columns: str, unique: bool = False, name: Optional[str] = None):
        object.__setattr__(self, "columns", tuple(columns))
        object.__setattr__(self, "unique", unique)
        object.__setattr__(self, "name", name)


@dataclass(frozen=True)
class TableSpec:
    name: Optional[str] = None
    indexes: Tuple[Index, ...] = ()


@dataclass(frozen=True)
class Reference:
    """Foreign key declaration carried by a column."""

    record_type: type
    column: Optional[str] = None
    on_delete: OnDeleteAction = OnDeleteAction.NO_ACTION


@dataclass(frozen=True)
class ColumnSpec:
    name: Optional[str] = None
    primary_key: bool = False
    auto_increment: bool = False
    nullable: Optional[bool] = None
    max_length: int = 0
    unique: bool = False
    index: bool = False
    unique_index: bool = False
    index_name: Optional[str] = None
    references: Optional[Reference] = None


def table(
    name: Optional[str] = None, *, indexes: Tuple[Index, ...] = ()
) -> Callable[[Type[T]], Type[T]]:
    """
    Attach table metadata to a record type.

    Args:
        name: Explicit table name; derived from the class name when omitted
        indexes: Type-level index declarations

    Returns:
        Class decorator
    """

    def decorate(cls: Type[T]) -> Type[T]:
        setattr(cls, TABLE_ATTR, TableSpec(name=name, indexes=tuple(indexes)))
        return cls

    return decorate


def references(
    record_type: type,
    column: Optional[str] = None,
    on_delete: OnDeleteAction = OnDeleteAction.NO_ACTION,
) -> Reference:
    """
    Declare a foreign key.

    Args:
        record_type: Referenced record type
        column: Referenced field or column; the referenced primary key if omitted
        on_delete: Referential action

    Returns:
        Reference declaration for ``column(references=...)``
    """
    return Reference(record_type=record_type, column=column, on_delete=on_delete)


def column(
    name: Optional[str] = None,
    *,
    primary_key: bool = False,
    auto_increment: bool = False,
    nullable: Optional[bool] = None,
    max_length: int = 0,
    unique: bool = False,
    index: bool = False,
    unique_index: bool = False,
    index_name: Optional[str] = None,
    references: Optional[Reference] = None,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    **field_kwargs: Any,
) -> Any:
    """Declare a mapped dataclass field."""
    spec = ColumnSpec(
        name=name,
        primary_key=primary_key,
        auto_increment=auto_increment,
        nullable=nullable,
        max_length=max_length,
        unique=unique,
        index=index or unique_index or index_name is not None,
        unique_index=unique_index,
        index_name=index_name,
        references=references,
    )
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[COLUMN_KEY] = spec
    return field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **field_kwargs,
    )


def ignored(default: Any = MISSING, default_factory: Any = MISSING, **field_kwargs: Any) -> Any:
    """Declare a dataclass field that is never mapped (e.g. navigation data)."""
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[IGNORE_KEY] = True
    return field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **field_kwargs,
    )


def table_spec(cls: type) -> TableSpec:
    # Only the class's own declaration counts; subclasses must redeclare.
    spec = cls.__dict__.get(TABLE_ATTR)
    return spec if spec is not None else TableSpec()
