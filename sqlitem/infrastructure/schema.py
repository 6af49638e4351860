"""
Schema bootstrapper.

Creates tables and indexes for record types with ``IF NOT EXISTS`` DDL, so
running it again against an existing database changes nothing.
"""
from sqlitem.domain.annotations import OnDeleteAction
from sqlitem.infrastructure.sql_builder import SqlBuilder
from sqlitem.infrastructure.unit_of_work import UnitOfWork, UnitOfWorkFactory
from sqlitem.logging import get_logger


logger = get_logger(__name__)


class SchemaBootstrapper:
    """Issues CREATE TABLE / CREATE INDEX statements for record types."""

    def __init__(self, builder: SqlBuilder):
        self.builder = builder

    async def ensure_created(self, uow: UnitOfWork, *record_types: type) -> None:
        """
        Create tables and their indexes inside the caller's Unit of Work.

        Types are processed in the given order; list referenced types before
        the types referencing them. Nothing is committed here.

        Args:
            uow: Active Unit of Work
            *record_types: Record types to create
        """
        uow.ensure_active()
        # Build everything first so a mapping error leaves the database untouched
        statements = []
        for record_type in record_types:
            self._check_foreign_key_enforcement(uow, record_type)
            statements.append(self.builder.build_create_table(record_type))
            statements.extend(self.builder.build_create_indexes(record_type))

        for sql in statements:
            await uow.execute(sql)
        logger.info(f"Schema ensured for {len(record_types)} type(s)")

    async def ensure_created_in_new_scope(
        self, uow_factory: UnitOfWorkFactory, *record_types: type
    ) -> None:
        """Open a Unit of Work, create the schema and commit."""
        async with await uow_factory.create() as uow:
            await self.ensure_created(uow, *record_types)
            await uow.commit()

    def _check_foreign_key_enforcement(self, uow: UnitOfWork, record_type: type) -> None:
        if uow.pragmas.foreign_keys:
            return
        metadata = self.builder.mapper.resolve(record_type)
        actions = [
            fk for fk in metadata.foreign_keys if fk.on_delete is not OnDeleteAction.NO_ACTION
        ]
        if actions:
            logger.warning(
                f"{record_type.__name__} declares ON DELETE actions but foreign key "
                "enforcement is disabled; they will not run"
            )
