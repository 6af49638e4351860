"""Tests for EntityMapper metadata resolution."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import pytest

from sqlitem import (
    ColumnCollisionError,
    EntityMapper,
    Index,
    MappingError,
    OnDeleteAction,
    SnakeCaseNameTranslator,
    column,
    ignored,
    references,
    table,
)
from postponed_records import Dangling, Parent
from records import Order, Person, Tag


@dataclass
class CustomerAccount:
    id: int = 0
    displayName: str = ""


@dataclass
class Invoice:
    InvoiceId: int = 0
    number: str = ""


@dataclass
class Shipment:
    shipment_id: int = 0
    carrier: str = ""


def test_table_name_from_decorator(mapper):
    assert mapper.table_name(Person) == "persons"


def test_table_name_falls_back_to_translated_type_name():
    assert EntityMapper().table_name(CustomerAccount) == "CustomerAccount"
    assert EntityMapper(SnakeCaseNameTranslator()).table_name(CustomerAccount) == "customer_account"


def test_empty_table_name_is_rejected(mapper):
    @table("  ")
    @dataclass
    class Blank:
        id: int = 0

    with pytest.raises(MappingError):
        mapper.resolve(Blank)


def test_columns_follow_declaration_order_and_skip_ignored(mapper):
    @dataclass
    class WithPrivate:
        id: int = 0
        name: str = ""
        _cache: Optional[str] = None
        extra: str = ignored(default="")

    names = [c.database_column_name for c in mapper.columns(WithPrivate)]

    assert names == ["id", "name"]
    assert [c.database_column_name for c in mapper.columns(Person)] == [
        "id",
        "first_name",
        "last_name",
        "email",
    ]


def test_snake_case_translator_applies_to_undeclared_columns():
    mapper = EntityMapper(SnakeCaseNameTranslator())

    columns = mapper.columns(CustomerAccount)

    assert [c.database_column_name for c in columns] == ["id", "display_name"]
    assert columns[1].declared_field_name == "displayName"


@pytest.mark.parametrize(
    "record_type,key",
    [(CustomerAccount, "id"), (Invoice, "InvoiceId"), (Shipment, "shipment_id")],
)
def test_conventional_primary_key(mapper, record_type, key):
    assert mapper.primary_key(record_type).declared_field_name == key


def test_declared_primary_key_wins_over_convention(mapper):
    meta = mapper.resolve(Tag)

    assert meta.primary_key.database_column_name == "code"
    assert not meta.has_auto_generated_key


def test_type_without_key(mapper):
    @dataclass
    class Note:
        body: str = ""

    assert mapper.primary_key(Note) is None


def test_more_than_one_declared_key_is_rejected(mapper):
    @dataclass
    class Composite:
        a: int = column(primary_key=True, default=0)
        b: int = column(primary_key=True, default=0)

    with pytest.raises(MappingError):
        mapper.resolve(Composite)


def test_auto_increment_requires_integer_key(mapper):
    @dataclass
    class TextKey:
        id: str = column(primary_key=True, auto_increment=True, default="")

    with pytest.raises(MappingError):
        mapper.resolve(TextKey)


def test_auto_increment_rejected_on_frozen_type(mapper):
    @dataclass(frozen=True)
    class Frozen:
        id: int = column(primary_key=True, auto_increment=True, default=0)

    with pytest.raises(MappingError):
        mapper.resolve(Frozen)


def test_nullability_defaults(mapper):
    by_field = {c.declared_field_name: c for c in mapper.columns(Order)}

    assert not by_field["id"].is_nullable
    assert not by_field["person_id"].is_nullable
    assert not by_field["total"].is_nullable
    assert by_field["created_at"].is_nullable
    assert by_field["note"].is_nullable


def test_explicit_nullable_overrides_type(mapper):
    by_field = {c.declared_field_name: c for c in mapper.columns(Person)}

    assert not by_field["first_name"].is_nullable
    assert by_field["first_name"].max_length == 100
    assert by_field["email"].is_unique_column


def test_translated_names_colliding_raise():
    @dataclass
    class Clash:
        id: int = 0
        first_name: str = ""
        firstName: str = ""

    with pytest.raises(ColumnCollisionError) as exc_info:
        EntityMapper(SnakeCaseNameTranslator()).resolve(Clash)

    assert exc_info.value.column == "first_name"
    assert exc_info.value.fields == ("first_name", "firstName")


def test_collision_is_case_insensitive(mapper):
    @dataclass
    class Clash:
        id: int = 0
        email: str = ""
        mail: str = column("EMAIL", default="")

    with pytest.raises(ColumnCollisionError):
        mapper.resolve(Clash)


def test_foreign_key_defaults_to_referenced_primary_key(mapper):
    (fk,) = mapper.foreign_keys(Order)

    assert fk.local_column == "person_id"
    assert fk.referenced_type is Person
    assert fk.referenced_table == "persons"
    assert fk.referenced_column == "id"
    assert fk.on_delete is OnDeleteAction.CASCADE


def test_foreign_key_to_named_column(mapper):
    @dataclass
    class Subscription:
        id: int = 0
        person_email: Optional[str] = column(
            references=references(Person, column="email", on_delete=OnDeleteAction.SET_NULL),
            default=None,
        )

    (fk,) = mapper.foreign_keys(Subscription)

    assert fk.referenced_column == "email"
    assert fk.on_delete is OnDeleteAction.SET_NULL


def test_field_and_type_level_indexes(mapper):
    indexes = mapper.indexes(Order)

    assert [(i.name, i.columns, i.unique) for i in indexes] == [
        ("ix_orders_person_id", ("person_id",), False),
        ("ix_orders_person_id_total", ("person_id", "total"), False),
    ]


def test_unique_index_and_custom_name(mapper):
    @table("gadgets", indexes=[Index("serial", unique=True, name="ux_gadget_serial")])
    @dataclass
    class Gadget:
        id: int = 0
        serial: str = ""
        label: str = column(index_name="gadget_label", default="")

    indexes = {i.name: i for i in mapper.indexes(Gadget)}

    assert indexes["gadget_label"].columns == ("label",)
    assert not indexes["gadget_label"].unique
    assert indexes["ux_gadget_serial"].unique
    assert mapper.indexes(Tag)[0].unique


def test_duplicate_index_names_are_rejected(mapper):
    @table("dupes", indexes=[Index("name", name="ix_dupes_name")])
    @dataclass
    class Dupes:
        id: int = 0
        name: str = column(index=True, default="")

    with pytest.raises(MappingError):
        mapper.resolve(Dupes)


def test_index_on_unknown_field_is_rejected(mapper):
    @table("broken", indexes=[Index("missing")])
    @dataclass
    class Broken:
        id: int = 0

    with pytest.raises(MappingError):
        mapper.resolve(Broken)


def test_non_dataclass_is_rejected(mapper):
    class Plain:
        id = 0

    with pytest.raises(MappingError):
        mapper.resolve(Plain)


def test_metadata_is_cached(mapper):
    assert mapper.resolve(Person) is mapper.resolve(Person)


def test_string_annotations_resolve_to_types(mapper, builder):
    columns = mapper.columns(Parent)

    assert [(c.database_column_name, c.field_type, c.is_nullable) for c in columns] == [
        ("id", int, False),
        ("count", int, False),
        ("total", Decimal, True),
    ]
    assert builder.build_create_table(Parent) == (
        'CREATE TABLE IF NOT EXISTS "parents" ('
        '"id" INTEGER PRIMARY KEY AUTOINCREMENT, "count" INTEGER NOT NULL, "total" REAL);'
    )


def test_unresolvable_annotation_on_mapped_field_is_rejected(mapper):
    with pytest.raises(MappingError, match="Dangling.owner"):
        mapper.resolve(Dangling)
