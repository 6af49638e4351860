"""
Minimal filter/sort query model.

A Query is an ordered list of AND-combined conditions plus at most one sort
column. Column tokens are resolved against entity metadata only when the
query is executed, so callers may use either declared field names or
database column names.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from sqlitem.domain.errors import InvalidArgumentError, UnknownColumnError
from sqlitem.domain.metadata import ColumnMapping, EntityMetadata


class Operator(str, Enum):
    """Comparison operators."""

    EQ = "="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="

    @property
    def is_relational(self) -> bool:
        return self is not Operator.EQ


@dataclass(frozen=True)
class Condition:
    column: str
    operator: Operator
    value: Any = None


@dataclass
class Query:
    """
    Fluent query builder.

    Usage:
        q = (
            Query.where_greater_or_equals("age", 36)
            .and_equals("last_name", "Lovelace")
            .order_by("created_at", descending=True)
        )
    """

    conditions: List[Condition] = field(default_factory=list)
    order_by_column: Optional[str] = None
    order_by_descending: bool = False

    # Constructors

    @classmethod
    def where_equals(cls, column: str, value: Any) -> "Query":
        return cls().and_equals(column, value)

    @classmethod
    def where_greater(cls, column: str, value: Any) -> "Query":
        return cls().and_greater(column, value)

    @classmethod
    def where_greater_or_equals(cls, column: str, value: Any) -> "Query":
        return cls().and_greater_or_equals(column, value)

    @classmethod
    def where_less(cls, column: str, value: Any) -> "Query":
        return cls().and_less(column, value)

    @classmethod
    def where_less_or_equals(cls, column: str, value: Any) -> "Query":
        return cls().and_less_or_equals(column, value)

    # Chaining

    def and_equals(self, column: str, value: Any) -> "Query":
        """``None`` renders as ``IS NULL``."""
        return self._add(column, Operator.EQ, value)

    def and_greater(self, column: str, value: Any) -> "Query":
        return self._add(column, Operator.GT, value)

    def and_greater_or_equals(self, column: str, value: Any) -> "Query":
        return self._add(column, Operator.GE, value)

    def and_less(self, column: str, value: Any) -> "Query":
        return self._add(column, Operator.LT, value)

    def and_less_or_equals(self, column: str, value: Any) -> "Query":
        return self._add(column, Operator.LE, value)

    def order_by(self, column: str, descending: bool = False) -> "Query":
        """Set the sort column; a later call replaces an earlier one."""
        _require_column(column)
        self.order_by_column = column
        self.order_by_descending = descending
        return self

    def _add(self, column: str, operator: Operator, value: Any) -> "Query":
        _require_column(column)
        # "col > NULL" is never true in SQL; reject instead of matching nothing
        if operator.is_relational and value is None:
            raise InvalidArgumentError(
                f"Operator {operator.name} does not accept None. "
                "Use and_equals(column, None) for IS NULL."
            )
        self.conditions.append(Condition(column, operator, value))
        return self


def _require_column(column: str) -> None:
    if not isinstance(column, str) or not column.strip():
        raise InvalidArgumentError("Column must not be empty.")


def resolve_column(metadata: EntityMetadata, token: str, translator) -> ColumnMapping:
    """
    Resolve a caller-supplied column token to a mapped column.

    Tried in order: database column name, declared field name, then the
    translator's column name for the token.

    Args:
        metadata: Metadata of the queried record type
        token: Field or column name given by the caller
        translator: Active name translator

    Returns:
        The matching column mapping

    Raises:
        UnknownColumnError: If no column matches
    """
    by_column = metadata.column_by_name(token)
    if by_column is not None:
        return by_column

    by_field = metadata.column_by_field(token)
    if by_field is not None:
        return by_field

    translated = metadata.column_by_name(translator.column(token))
    if translated is not None:
        return translated

    raise UnknownColumnError(token, metadata.record_type)
