from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from src.crud.base import BaseCRUD
from src.models.country import Country


class CountryCRUD(BaseCRUD[Country]):
    async def list_active(self, session: AsyncSession) -> list[Country]:
        return await self.find_by(session, Country.is_active.is_(True), order_by=[Country.name.asc()])

    async def get_by_name(self, session: AsyncSession, *, name: str) -> Country | None:
        items = await self.find_by(session, func.lower(Country.name) == name.lower(), limit=1)
        return items[0] if items else None

    async def upsert(self, session: AsyncSession, *, name: str, code: str | None, region: str | None) -> Country:
        now = datetime.now(tz=timezone.utc)
        existing = await self.get_by_name(session, name=name)
        if existing is None:
            return await self.insert(
                session,
                db_obj=Country(name=name, code=code, region=region, is_active=True, refreshed_at=now),
            )
        return await self.update(
            session,
            db_obj=existing,
            values={"code": code, "region": region, "is_active": True, "refreshed_at": now},
        )


countries = CountryCRUD(Country)
