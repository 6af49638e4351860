"""Record types shared by the test suite."""
import enum
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlitem import Index, OnDeleteAction, column, ignored, references, table


@table("persons")
@dataclass
class Person:
    id: int = column(primary_key=True, auto_increment=True, default=0)
    first_name: str = column(nullable=False, max_length=100, default="")
    last_name: Optional[str] = column(max_length=100, default=None)
    email: Optional[str] = column(unique=True, default=None)
    orders: List["Order"] = ignored(default_factory=list)


@table("orders", indexes=[Index("person_id", "total")])
@dataclass
class Order:
    id: int = column(primary_key=True, auto_increment=True, default=0)
    person_id: int = column(
        references=references(Person, on_delete=OnDeleteAction.CASCADE),
        index=True,
        default=0,
    )
    total: Decimal = Decimal("0")
    created_at: Optional[datetime] = None
    note: Optional[str] = None


class Status(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"


@table("all_types")
@dataclass
class AllTypes:
    id: int = column(primary_key=True, auto_increment=True, default=0)
    flag: bool = False
    count: int = 0
    ratio: float = 0.0
    amount: Decimal = Decimal("0")
    stamp: datetime = datetime(2000, 1, 1)
    day: date = date(2000, 1, 1)
    at: time = time(0, 0)
    status: Status = Status.DRAFT
    token: Optional[UUID] = None
    maybe_count: Optional[int] = None
    text: Optional[str] = None


@table("no_key")
@dataclass
class NoKey:
    value: str = ""


@table("tags")
@dataclass
class Tag:
    code: str = column(primary_key=True, default="")
    label: str = column(unique_index=True, default="")


@table("counters")
@dataclass
class Counter:
    id: int = column(primary_key=True, auto_increment=True, default=0)


@table("contact list")
@dataclass
class Contact:
    id: int = column(primary_key=True, auto_increment=True, default=0)
    email: str = column("e-mail", default="")
    full_name: Optional[str] = column("full name", default=None)
