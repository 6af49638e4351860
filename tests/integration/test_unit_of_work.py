"""Integration tests for UnitOfWork against a file database."""

import pytest
from sqlalchemy.exc import OperationalError

from sqlitem import (
    CompletedScopeError,
    Database,
    PragmaOptions,
    ScopeDisposedError,
    SqliteConnectionFactory,
    UnitOfWork,
    UnitOfWorkFactory,
)
from sqlitem.infrastructure.unit_of_work import UnitOfWorkState
from sqlitem.settings import MEMORY_URL
from records import Person


async def count_persons(db) -> int:
    async with await db.unit_of_work() as uow:
        result = await uow.execute('SELECT COUNT(*) FROM "persons";')
        return result.scalar_one()


@pytest.mark.asyncio
async def test_foreign_keys_pragma_is_on_by_default(db):
    async with await db.unit_of_work() as uow:
        result = await uow.execute("PRAGMA foreign_keys;")

        assert result.scalar_one() == 1


@pytest.mark.asyncio
async def test_configured_pragmas_are_applied(database_url):
    factory = SqliteConnectionFactory.for_url(database_url)
    pragmas = PragmaOptions(foreign_keys=False, journal_mode="wal", busy_timeout=1234)
    try:
        async with await UnitOfWork.open(factory, pragmas) as uow:
            assert (await uow.execute("PRAGMA foreign_keys;")).scalar_one() == 0
            assert (await uow.execute("PRAGMA journal_mode;")).scalar_one() == "wal"
            assert (await uow.execute("PRAGMA busy_timeout;")).scalar_one() == 1234
            assert uow.pragmas is pragmas
    finally:
        await factory.dispose()


@pytest.mark.asyncio
async def test_commit_persists(db):
    async with await db.unit_of_work() as uow:
        await uow.execute(
            'INSERT INTO "persons" ("first_name") VALUES (:first_name);',
            {"first_name": "Ada"},
        )
        await uow.commit()

        assert uow.state is UnitOfWorkState.COMMITTED

    assert await count_persons(db) == 1


@pytest.mark.asyncio
async def test_dispose_without_commit_rolls_back(db):
    uow = await db.unit_of_work()
    await uow.execute('INSERT INTO "persons" ("first_name") VALUES (:n);', {"n": "Ada"})

    await uow.dispose()

    assert uow.state is UnitOfWorkState.DISPOSED
    assert await count_persons(db) == 0


@pytest.mark.asyncio
async def test_explicit_rollback(db):
    async with await db.unit_of_work() as uow:
        await uow.execute('INSERT INTO "persons" ("first_name") VALUES (:n);', {"n": "Ada"})
        await uow.rollback()

        assert uow.state is UnitOfWorkState.ROLLED_BACK

    assert await count_persons(db) == 0


@pytest.mark.asyncio
async def test_exception_inside_scope_rolls_back_and_propagates(db):
    with pytest.raises(RuntimeError, match="boom"):
        async with await db.unit_of_work() as uow:
            await uow.execute('INSERT INTO "persons" ("first_name") VALUES (:n);', {"n": "Ada"})
            raise RuntimeError("boom")

    assert uow.state is UnitOfWorkState.DISPOSED
    assert await count_persons(db) == 0


@pytest.mark.asyncio
async def test_commit_and_rollback_are_idempotent(db):
    async with await db.unit_of_work() as uow:
        await uow.commit()
        await uow.commit()
        await uow.rollback()

        assert uow.state is UnitOfWorkState.COMMITTED


@pytest.mark.asyncio
async def test_execute_after_commit_raises(db):
    async with await db.unit_of_work() as uow:
        await uow.commit()

        with pytest.raises(CompletedScopeError):
            await uow.execute('SELECT 1;')


@pytest.mark.asyncio
async def test_use_after_dispose_raises(db):
    uow = await db.unit_of_work()
    await uow.dispose()
    await uow.dispose()

    with pytest.raises(ScopeDisposedError):
        await uow.execute("SELECT 1;")
    with pytest.raises(ScopeDisposedError):
        await uow.commit()
    with pytest.raises(ScopeDisposedError):
        await uow.rollback()
    with pytest.raises(ScopeDisposedError):
        uow.connection


@pytest.mark.asyncio
async def test_failed_open_releases_connection(db):
    factory = UnitOfWorkFactory(
        db.connection_factory, PragmaOptions(additional=["this is not sql"])
    )

    with pytest.raises(OperationalError):
        await factory.create()

    # The connection was closed, so the database is still usable
    assert await count_persons(db) == 0


@pytest.mark.asyncio
async def test_factory_takes_pragmas_from_settings(db):
    factory = UnitOfWorkFactory(db.connection_factory)

    assert factory.pragmas == db.settings.pragmas


@pytest.mark.asyncio
async def test_in_memory_database_is_shared_across_units_of_work():
    db = Database.from_url(MEMORY_URL)
    try:
        await db.ensure_created(Person)
        async with await db.unit_of_work() as uow:
            await db.repositories.create(Person, uow).insert(Person(first_name="Ada"))
            await uow.commit()

        assert await count_persons(db) == 1
    finally:
        await db.close()
