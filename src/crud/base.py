from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement


TModel = TypeVar("TModel")


class BaseCRUD(Generic[TModel]):
    """Generic record store for SQLAlchemy (async).

    Notes:
    - Methods intentionally do NOT commit. Callers own the transaction boundary
      (``async with session.begin(): ...``).
    - Writes flush immediately so generated ids and version tokens are visible
      to the caller inside the same transaction.
    """

    def __init__(self, model: type[TModel]) -> None:
        self.model = model

    async def find_by_id(self, session: AsyncSession, *, id: Any) -> TModel | None:
        q = select(self.model).where(getattr(self.model, "id") == id)
        r = await session.execute(q)
        return r.scalar_one_or_none()

    async def find_by(
        self,
        session: AsyncSession,
        *predicates: ColumnElement[bool],
        order_by: list[Any] | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[TModel]:
        q = select(self.model).where(*predicates)
        if order_by:
            q = q.order_by(*order_by)
        if skip:
            q = q.offset(max(skip, 0))
        if limit is not None:
            q = q.limit(max(1, limit))

        r = await session.execute(q)
        return list(r.scalars().all())

    async def count_matching(self, session: AsyncSession, *predicates: ColumnElement[bool]) -> int:
        q = select(func.count()).select_from(self.model).where(*predicates)
        return int((await session.execute(q)).scalar_one())

    async def exists(self, session: AsyncSession, *predicates: ColumnElement[bool]) -> bool:
        q = select(getattr(self.model, "id")).where(*predicates).limit(1)
        return (await session.execute(q)).first() is not None

    async def insert(self, session: AsyncSession, *, db_obj: TModel) -> TModel:
        session.add(db_obj)
        await session.flush()
        return db_obj

    async def update(self, session: AsyncSession, *, db_obj: TModel, values: dict[str, Any] | None = None) -> TModel:
        for field, value in (values or {}).items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        session.add(db_obj)  # no-op for persistent objects, safe for detached
        await session.flush()
        return db_obj

    async def delete(self, session: AsyncSession, *, db_obj: TModel) -> None:
        await session.delete(db_obj)
        await session.flush()
