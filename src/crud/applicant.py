from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from src.crud.base import BaseCRUD
from src.models.applicant import Applicant


# Canonical sort keys, lowercased and without underscores.
SORT_COLUMNS = {
    "name": Applicant.name,
    "familyname": Applicant.family_name,
    "age": Applicant.age,
    "applieddate": Applicant.applied_date,
    "countryoforigin": Applicant.country_of_origin,
    "email": Applicant.email_address,
    "id": Applicant.id,
}

SEARCH_COLUMNS = (
    Applicant.name,
    Applicant.family_name,
    Applicant.email_address,
    Applicant.address,
    Applicant.phone,
    Applicant.country_of_origin,
)

QUICK_SEARCH_COLUMNS = (
    Applicant.name,
    Applicant.family_name,
    Applicant.email_address,
    Applicant.country_of_origin,
)


def normalize_sort_key(sort_by: str) -> str:
    return sort_by.replace("_", "").lower()


def _substring_match(term: str, columns) -> ColumnElement[bool]:
    needle = term.lower()
    return or_(*(func.lower(col).contains(needle, autoescape=True) for col in columns))


class ApplicantCRUD(BaseCRUD[Applicant]):
    async def get(self, session: AsyncSession, *, applicant_id: int, include_deleted: bool = False) -> Applicant | None:
        if include_deleted:
            return await self.find_by_id(session, id=applicant_id)

        q = select(Applicant).where(Applicant.id == applicant_id, Applicant.is_deleted.is_(False))

        r = await session.execute(q)
        return r.scalar_one_or_none()

    async def email_exists(self, session: AsyncSession, *, email: str, exclude_id: int | None = None) -> bool:
        predicates = [
            func.lower(Applicant.email_address) == email.lower(),
            Applicant.is_deleted.is_(False),
        ]
        if exclude_id is not None:
            predicates.append(Applicant.id != exclude_id)
        return await self.exists(session, *predicates)

    async def list_filtered(
        self,
        session: AsyncSession,
        *,
        search_term: str | None = None,
        min_age: int | None = None,
        max_age: int | None = None,
        country: str | None = None,
        hired: bool | None = None,
        applied_from: datetime | None = None,
        applied_to: datetime | None = None,
        sort_by: str = "name",
        sort_descending: bool = False,
        page: int = 1,
        page_size: int = 50,
        include_deleted: bool = False,
    ) -> tuple[list[Applicant], int]:
        """Return (items, total). ``total`` counts the whole filtered set.

        Callers validate ``sort_by`` and clamp ``page``/``page_size``.
        """

        predicates: list[ColumnElement[bool]] = []

        if not include_deleted:
            predicates.append(Applicant.is_deleted.is_(False))
        if search_term:
            predicates.append(_substring_match(search_term, SEARCH_COLUMNS))
        if min_age is not None:
            predicates.append(Applicant.age >= min_age)
        if max_age is not None:
            predicates.append(Applicant.age <= max_age)
        if country:
            predicates.append(func.lower(Applicant.country_of_origin) == country.lower())
        if hired is not None:
            predicates.append(Applicant.hired.is_(hired))
        if applied_from is not None:
            predicates.append(Applicant.applied_date >= applied_from)
        if applied_to is not None:
            predicates.append(Applicant.applied_date <= applied_to)

        total = await self.count_matching(session, *predicates)

        sort_col = SORT_COLUMNS[normalize_sort_key(sort_by)]
        # Deterministic ordering across pages: tie-break on id.
        if sort_descending:
            order_by = [sort_col.desc(), Applicant.id.desc()]
        else:
            order_by = [sort_col.asc(), Applicant.id.asc()]

        items = await self.find_by(
            session,
            *predicates,
            order_by=order_by,
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        return items, total

    async def search(self, session: AsyncSession, *, term: str | None) -> list[Applicant]:
        predicates: list[ColumnElement[bool]] = [Applicant.is_deleted.is_(False)]
        if term:
            predicates.append(_substring_match(term, QUICK_SEARCH_COLUMNS))

        return await self.find_by(
            session,
            *predicates,
            order_by=[Applicant.name.asc(), Applicant.family_name.asc(), Applicant.id.asc()],
        )


applicants = ApplicantCRUD(Applicant)
