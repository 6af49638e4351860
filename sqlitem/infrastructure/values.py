"""
Value conversion between Python field types and SQLite storage classes.

SQLite stores INTEGER, REAL, TEXT, BLOB and NULL. Binding widens Python
values into those classes; materialization converts stored values back
according to the declared field type.
"""
import enum
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID


def to_db(value: Any) -> Any:
    """
    Convert a field value into a driver-bindable value.

    Args:
        value: Python value read off a record

    Returns:
        int, float, str, bytes or None
    """
    if value is None:
        return None
    if isinstance(value, enum.Enum):
        return to_db(value.value)
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, Decimal):
        return float(value)
    # datetime before date: datetime is a date subclass
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def from_db(field_type: Any, value: Any) -> Any:
    """
    Convert a stored value to the declared field type.

    ``field_type`` must already have ``Optional`` stripped.

    Args:
        field_type: Declared field type
        value: Value returned by the driver

    Returns:
        Converted value; unknown types pass through unchanged
    """
    if value is None:
        return None
    if not isinstance(field_type, type):
        return value

    if issubclass(field_type, enum.Enum):
        return field_type(value)
    if field_type is str:
        return value if isinstance(value, str) else str(value)
    if field_type is bool:
        return int(value) != 0
    if issubclass(field_type, int):
        return int(value)
    if field_type is float:
        return float(value)
    if field_type is Decimal:
        # via str so that 19.99 reads back as Decimal("19.99")
        return Decimal(str(value))
    if field_type is datetime:
        return value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if field_type is date:
        return value if isinstance(value, date) else date.fromisoformat(str(value))
    if field_type is time:
        return value if isinstance(value, time) else time.fromisoformat(str(value))
    if field_type is UUID:
        return value if isinstance(value, UUID) else UUID(str(value))
    return value
