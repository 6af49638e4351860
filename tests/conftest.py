"""Pytest configuration and fixtures."""

import pytest
import pytest_asyncio

from sqlitem import Database, EntityMapper, SqlBuilder, SqliteMSettings
from records import AllTypes, Contact, Counter, NoKey, Order, Person, Tag


ALL_RECORDS = (Person, Order, AllTypes, NoKey, Tag, Counter, Contact)


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed database, so data survives across units of work."""
    return SqliteMSettings.sqlite_url(tmp_path / "test.db")


@pytest_asyncio.fixture
async def db(database_url):
    """Database with every test record table created."""
    database = Database.from_url(database_url)
    await database.ensure_created(*ALL_RECORDS)

    yield database

    await database.close()


@pytest.fixture
def mapper() -> EntityMapper:
    return EntityMapper()


@pytest.fixture
def builder(mapper) -> SqlBuilder:
    return SqlBuilder(mapper)
