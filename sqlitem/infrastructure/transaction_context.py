"""
Transaction context.

Groups repositories of several record types over one shared Unit of Work,
so that they commit or roll back together.
"""
from enum import Enum
from typing import Dict, Type, TypeVar

from sqlitem.domain.errors import CompletedScopeError, ScopeDisposedError
from sqlitem.infrastructure.repository import Repository, RepositoryFactory
from sqlitem.infrastructure.unit_of_work import UnitOfWork, UnitOfWorkFactory
from sqlitem.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


class TransactionContextState(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DISPOSED = "disposed"


class TransactionContext:
    """
    Shared-transaction scope for multi-type work.

    A context created with ``begin`` owns its Unit of Work and disposes it
    on exit; one wrapped around an existing Unit of Work leaves disposal to
    the caller.

    Usage:
        async with await TransactionContext.begin(uow_factory, repositories) as tx:
            person_id = await tx.repo(Person).insert(person)
            await tx.repo(Order).insert(Order(person_id=person_id, total=...))
            await tx.commit()
    """

    def __init__(
        self,
        uow: UnitOfWork,
        repositories: RepositoryFactory,
        owns_unit_of_work: bool = False,
    ):
        self.uow = uow
        self.repositories = repositories
        self.owns_unit_of_work = owns_unit_of_work
        self._state = TransactionContextState.ACTIVE
        self._repos: Dict[type, Repository] = {}

    @classmethod
    async def begin(
        cls, uow_factory: UnitOfWorkFactory, repositories: RepositoryFactory
    ) -> "TransactionContext":
        uow = await uow_factory.create()
        return cls(uow, repositories, owns_unit_of_work=True)

    async def __aenter__(self) -> "TransactionContext":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            logger.error(f"Transaction context failed: {exc_val!r}")
        await self.dispose()

    @property
    def state(self) -> TransactionContextState:
        return self._state

    def repo(self, record_type: Type[T]) -> Repository[T]:
        """
        Get the repository for a record type, bound to the shared Unit of Work.

        Raises:
            ScopeDisposedError: If the context is disposed
            CompletedScopeError: If the context was committed or rolled back
        """
        self._ensure_active()
        repository = self._repos.get(record_type)
        if repository is None:
            repository = self.repositories.create(record_type, self.uow)
            self._repos[record_type] = repository
        return repository

    async def commit(self) -> None:
        self._ensure_not_disposed()
        if self._state is TransactionContextState.COMPLETED:
            return
        try:
            await self.uow.commit()
        finally:
            self._state = TransactionContextState.COMPLETED

    async def rollback(self) -> None:
        self._ensure_not_disposed()
        if self._state is TransactionContextState.COMPLETED:
            return
        try:
            await self.uow.rollback()
        finally:
            self._state = TransactionContextState.COMPLETED

    async def dispose(self) -> None:
        """Roll back if still active, then release an owned Unit of Work."""
        if self._state is TransactionContextState.DISPOSED:
            return
        try:
            if self._state is TransactionContextState.ACTIVE:
                try:
                    await self.uow.rollback()
                except Exception as e:
                    logger.warning(f"Rollback during dispose failed: {e}")
        finally:
            self._state = TransactionContextState.DISPOSED
            self._repos.clear()
            if self.owns_unit_of_work:
                await self.uow.dispose()

    def _ensure_not_disposed(self) -> None:
        if self._state is TransactionContextState.DISPOSED:
            raise ScopeDisposedError("The transaction context has already been disposed.")

    def _ensure_active(self) -> None:
        self._ensure_not_disposed()
        if self._state is TransactionContextState.COMPLETED:
            raise CompletedScopeError(
                "The transaction context has already been completed. "
                "Begin a new one to continue."
            )
