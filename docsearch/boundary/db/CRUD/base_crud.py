"""
Shared persistence helpers for the docsearch tables.

Every table-specific CRUD class derives from BaseCRUD, which supplies
insert, primary-key lookup and primary-key update with driver integrity
errors translated into StorageConstraintError.

Dependencies: sqlalchemy
System role: Common base of the CRUD singletons
"""

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docsearch.boundary.db.base import Base
from docsearch.core.exceptions import StorageConstraintError

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Table-agnostic operations keyed on the UUID primary key.

    Subclasses pass their model to __init__ and build their own
    conditional updates and queries on top of these helpers.
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **fields) -> ModelT:
        """
        Insert one row and return it with server defaults loaded.

        Raises:
            StorageConstraintError: Unique or foreign key violation
        """
        row = self.model(**fields)
        session.add(row)
        await self._flush(session)
        await session.refresh(row)
        return row

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        """Row with this primary key, or None."""
        result = await session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def update_by_id(self, session: AsyncSession, id: UUID, **fields) -> ModelT | None:
        """
        Set columns on one row via UPDATE ... RETURNING.

        Returns:
            The updated row, or None when no row has this id

        Raises:
            StorageConstraintError: The new values violate a constraint
        """
        stmt = (
            update(self.model)
            .where(self.model.id == id)
            .values(**fields)
            .returning(self.model)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await session.execute(stmt)
        except IntegrityError as e:
            raise self._constraint_error(e) from e
        return result.scalar_one_or_none()

    async def _flush(self, session: AsyncSession) -> None:
        try:
            await session.flush()
        except IntegrityError as e:
            raise self._constraint_error(e) from e

    def _constraint_error(self, exc: IntegrityError) -> StorageConstraintError:
        table = self.model.__tablename__
        return StorageConstraintError(
            f"Constraint violated on {table}",
            table=table,
            details={"error": str(exc.orig)},
        )
