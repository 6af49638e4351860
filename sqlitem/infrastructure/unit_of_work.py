"""
Unit of Work Pattern Implementation.

One Unit of Work owns one open connection and one open transaction.
"""
from enum import Enum
from typing import Any, Mapping, Optional

from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncConnection

from sqlitem.domain.errors import CompletedScopeError, ScopeDisposedError
from sqlitem.infrastructure.connection import ConnectionFactory
from sqlitem.logging import get_logger
from sqlitem.settings import PragmaOptions


logger = get_logger(__name__)


class UnitOfWorkState(str, Enum):
    """Unit of Work lifecycle states."""

    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    DISPOSED = "disposed"


class UnitOfWork:
    """
    Unit of Work pattern implementation.

    Opening applies the configured PRAGMAs and begins one transaction.
    Commit and rollback are idempotent once either has run. Disposal without
    either rolls back (best effort) and always closes the connection.

    Not safe for concurrent use; open one Unit of Work per task.

    Usage:
        async with await UnitOfWork.open(connection_factory) as uow:
            repo = repositories.create(Person, uow)
            await repo.insert(person)
            await uow.commit()
    """

    def __init__(self, connection: AsyncConnection, pragmas: PragmaOptions):
        """
        Wrap an already opened connection with an active transaction.

        Use ``UnitOfWork.open`` or ``UnitOfWorkFactory.create`` instead.

        Args:
            connection: Started SQLAlchemy async connection
            pragmas: PRAGMA options that were applied to it
        """
        self._connection = connection
        self.pragmas = pragmas
        self._state = UnitOfWorkState.ACTIVE

    @classmethod
    async def open(
        cls,
        connection_factory: ConnectionFactory,
        pragmas: Optional[PragmaOptions] = None,
    ) -> "UnitOfWork":
        """
        Open a connection, apply PRAGMAs and begin a transaction.

        Args:
            connection_factory: Provider of unopened connections
            pragmas: Connection tuning; foreign keys on by default

        Returns:
            Active UnitOfWork
        """
        pragmas = pragmas or PragmaOptions()
        connection = connection_factory.create()
        try:
            await connection.start()
            for statement in pragmas.statements():
                logger.debug(statement)
                await connection.exec_driver_sql(statement)
            await connection.exec_driver_sql("BEGIN")
        except BaseException:
            await _close_quietly(connection)
            raise

        logger.debug("Transaction started")
        return cls(connection, pragmas)

    async def __aenter__(self) -> "UnitOfWork":
        """Enter async context."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """
        Exit async context.

        Rolls back an uncompleted transaction and releases the connection.
        """
        if exc_type is not None:
            logger.error(f"Transaction failed: {exc_val!r}")
        await self.dispose()

    @property
    def state(self) -> UnitOfWorkState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is UnitOfWorkState.ACTIVE

    @property
    def connection(self) -> AsyncConnection:
        if self._state is UnitOfWorkState.DISPOSED:
            raise ScopeDisposedError("The unit of work has already been disposed.")
        return self._connection

    def ensure_active(self) -> None:
        """
        Raises:
            ScopeDisposedError: If disposed
            CompletedScopeError: If committed or rolled back
        """
        if self._state is UnitOfWorkState.DISPOSED:
            raise ScopeDisposedError("The unit of work has already been disposed.")
        if self._state is not UnitOfWorkState.ACTIVE:
            raise CompletedScopeError(
                f"The unit of work is already {self._state.value}. "
                "Create a new unit of work to continue."
            )

    async def execute(
        self, sql: str, parameters: Optional[Mapping[str, Any]] = None
    ) -> CursorResult:
        """
        Execute one statement inside the transaction.

        Args:
            sql: SQL text
            parameters: Named parameters

        Returns:
            Buffered cursor result
        """
        self.ensure_active()
        logger.debug(sql)
        return await self._connection.exec_driver_sql(sql, dict(parameters) if parameters else None)

    async def commit(self) -> None:
        """Commit transaction."""
        self._ensure_not_disposed()
        if self._state is not UnitOfWorkState.ACTIVE:
            return
        try:
            await self._connection.exec_driver_sql("COMMIT")
        except Exception as e:
            logger.error(f"❌ Commit failed: {e}")
            await self._rollback_quietly()
            self._state = UnitOfWorkState.ROLLED_BACK
            raise
        self._state = UnitOfWorkState.COMMITTED
        logger.info("✅ Transaction committed")

    async def rollback(self) -> None:
        """Rollback transaction."""
        self._ensure_not_disposed()
        if self._state is not UnitOfWorkState.ACTIVE:
            return
        try:
            await self._connection.exec_driver_sql("ROLLBACK")
        finally:
            self._state = UnitOfWorkState.ROLLED_BACK
        logger.info("Transaction rolled back")

    async def dispose(self) -> None:
        """
        Release the transaction and the connection.

        Rolls back first if neither commit nor rollback ran. Errors of that
        rollback are logged, never raised.
        """
        if self._state is UnitOfWorkState.DISPOSED:
            return
        try:
            if self._state is UnitOfWorkState.ACTIVE:
                await self._rollback_quietly()
        finally:
            self._state = UnitOfWorkState.DISPOSED
            await _close_quietly(self._connection)

    def _ensure_not_disposed(self) -> None:
        if self._state is UnitOfWorkState.DISPOSED:
            raise ScopeDisposedError("The unit of work has already been disposed.")

    async def _rollback_quietly(self) -> None:
        try:
            await self._connection.exec_driver_sql("ROLLBACK")
            logger.info("Transaction rolled back")
        except Exception as e:
            logger.warning(f"Rollback failed: {e}")


async def _close_quietly(connection: AsyncConnection) -> None:
    try:
        await connection.close()
    except Exception as e:
        logger.warning(f"Closing connection failed: {e}")


class UnitOfWorkFactory:
    """Creates Units of Work on connections from one provider."""

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        pragmas: Optional[PragmaOptions] = None,
    ):
        """
        Initialize factory.

        Args:
            connection_factory: Connection provider
            pragmas: PRAGMA options; taken from the provider's settings if omitted
        """
        self.connection_factory = connection_factory
        if pragmas is None:
            settings = getattr(connection_factory, "settings", None)
            pragmas = settings.pragmas if settings is not None else PragmaOptions()
        self.pragmas = pragmas

    async def create(self) -> UnitOfWork:
        return await UnitOfWork.open(self.connection_factory, self.pragmas)
