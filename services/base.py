"""MIC Service — Base Service Interface.

Implements the Service Repository pattern to decouple business logic
from API routes. Resource services inherit from this base class.

Features:
    - Lookup by primary key with ResourceNotFound on miss
    - Filtered, ordered, paginated listing with a total count
    - Patch application that ignores omitted and null fields
    - Commit with IntegrityError mapped to a domain error

Usage:
    class MachineService(BaseService[Machine]):
        resource_name = "Machine"

        def __init__(self, db: AsyncSession):
            super().__init__(Machine, db)
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError, ResourceNotFound
from logger import get_logger

ModelType = TypeVar("ModelType")

logger = get_logger(__name__)


class BaseService(Generic[ModelType]):
    """Base class for resource services.

    Services own their transactions: every state-changing method commits
    exactly once, so related writes land together or not at all.
    """

    resource_name: str = "Resource"

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """Initialize service with model class and database session.

        Args:
            model: The SQLAlchemy model class.
            db: The async database session.
        """
        self.model = model
        self.db = db
        self.logger = logger.bind(service=self.__class__.__name__)

    async def get(self, id: uuid.UUID) -> ModelType | None:
        """Get a single record by primary key."""
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_or_raise(self, id: uuid.UUID) -> ModelType:
        """Get record or raise ResourceNotFound."""
        obj = await self.get(id)
        if obj is None:
            raise ResourceNotFound(self.resource_name, id)
        return obj

    async def reload(self, id: uuid.UUID) -> ModelType:
        """Re-read a record, refreshing attributes and eager relationships."""
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def count(self, conditions: Iterable[ColumnElement[bool]] = ()) -> int:
        total = await self.db.scalar(
            select(func.count()).select_from(self.model).where(*conditions)
        )
        return int(total or 0)

    async def paginate(
        self,
        conditions: Iterable[ColumnElement[bool]],
        order_by: Iterable[Any],
        page: int,
        limit: int,
    ) -> tuple[list[ModelType], int]:
        """Fetch one page of records plus the total across all pages.

        Args:
            conditions: WHERE clauses, ANDed.
            order_by: ORDER BY expressions.
            page: 1-indexed page number.
            limit: Page size.

        Returns:
            ``(items, total_count)``.
        """
        conditions = list(conditions)
        total = await self.count(conditions)
        result = await self.db.execute(
            select(self.model)
            .where(*conditions)
            .order_by(*order_by)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    def apply_patch(db_obj: ModelType, data: Mapping[str, Any]) -> list[str]:
        """Copy non-null values onto ``db_obj``.

        Returns:
            Names of the attributes that actually changed.
        """
        changed: list[str] = []
        for field, value in data.items():
            if value is None or not hasattr(db_obj, field):
                continue
            if getattr(db_obj, field) != value:
                setattr(db_obj, field, value)
                changed.append(field)
        return changed

    async def commit(self, conflict_field: str = "id", conflict_value: Any = None) -> None:
        """Commit the unit of work.

        Raises:
            ConflictError: If a unique constraint rejects the write (e.g. a
                concurrent insert slipped past the pre-check).
        """
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            self.logger.warning(
                "Commit failed - integrity error",
                resource=self.resource_name,
                error=str(exc.orig),
            )
            raise ConflictError(self.resource_name, conflict_field, conflict_value) from exc

    async def delete(self, db_obj: ModelType) -> None:
        await self.db.delete(db_obj)
        await self.commit()
        self.logger.info(
            "Deleted record",
            id=str(getattr(db_obj, "id", None)),
            model=self.model.__name__,
        )
