from __future__ import annotations

from dataclasses import dataclass
import logging
import math

from sqlalchemy.ext.asyncio import AsyncSession

from src.crud.applicant import SORT_COLUMNS, applicants, normalize_sort_key
from src.models.applicant import Applicant
from src.schemas.applicant import ApplicantFilter
from src.services.errors import Outcome, SecurityRejected, ValidationFailed
from src.validators.fields import NAME_ALLOWED_CHARS
from src.validators.security import is_sql_injection_attempt, is_xss_attempt, sanitize_input


logger = logging.getLogger("applicants.query")

MAX_PAGE = 10_000
MAX_PAGE_SIZE = 100
SEARCH_TERM_MAX_LENGTH = 100
COUNTRY_FILTER_MAX_LENGTH = 50


@dataclass(frozen=True)
class ApplicantPage:
    items: list[Applicant]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.total_count else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1


def clamp_page(page: int) -> int:
    return min(max(page, 1), MAX_PAGE)


def clamp_page_size(page_size: int) -> int:
    return min(max(page_size, 1), MAX_PAGE_SIZE)


def _clean_text(label: str, value: str | None, *, max_length: int) -> str | None:
    if value is None or not value.strip():
        return None
    if len(value) > max_length:
        raise ValidationFailed(f"{label} cannot exceed {max_length} characters")
    if is_sql_injection_attempt(value, allowed_chars=NAME_ALLOWED_CHARS) or is_xss_attempt(value):
        raise SecurityRejected(f"{label} contains potentially malicious content")
    return sanitize_input(value.strip())


async def list_filtered(session: AsyncSession, options: ApplicantFilter) -> Outcome[ApplicantPage]:
    """Filtered, sorted, paginated listing.

    Out-of-range paging is clamped, not rejected. Everything else that is
    malformed (unknown sort key, inverted ranges, suspicious text) is rejected.
    """

    try:
        search_term = _clean_text("Search term", options.search_term, max_length=SEARCH_TERM_MAX_LENGTH)
        country = _clean_text("Country filter", options.country, max_length=COUNTRY_FILTER_MAX_LENGTH)

        if normalize_sort_key(options.sort_by) not in SORT_COLUMNS:
            raise ValidationFailed(
                "Invalid sort field. Allowed: name, familyName, age, appliedDate, countryOfOrigin, email, id"
            )
        if options.min_age is not None and options.max_age is not None and options.min_age > options.max_age:
            raise ValidationFailed("Minimum age cannot be greater than maximum age")
        if (
            options.applied_from is not None
            and options.applied_to is not None
            and options.applied_from > options.applied_to
        ):
            raise ValidationFailed("Applied-from date cannot be after applied-to date")
    except (ValidationFailed, SecurityRejected) as e:
        logger.warning("list_rejected kind=%s reason=%s", e.kind.value, e.message)
        return Outcome.from_rejection(e)

    page = clamp_page(options.page)
    page_size = clamp_page_size(options.page_size)

    async with session.begin():
        items, total = await applicants.list_filtered(
            session,
            search_term=search_term,
            min_age=options.min_age,
            max_age=options.max_age,
            country=country,
            hired=options.hired,
            applied_from=options.applied_from,
            applied_to=options.applied_to,
            sort_by=options.sort_by,
            sort_descending=options.sort_descending,
            page=page,
            page_size=page_size,
            include_deleted=options.include_deleted,
        )

    return Outcome.success(ApplicantPage(items=items, total_count=total, page=page, page_size=page_size))


async def search(session: AsyncSession, term: str | None) -> Outcome[list[Applicant]]:
    if term and len(term) > SEARCH_TERM_MAX_LENGTH:
        return Outcome.from_rejection(
            ValidationFailed(f"Search term cannot exceed {SEARCH_TERM_MAX_LENGTH} characters")
        )
    if is_sql_injection_attempt(term, allowed_chars=NAME_ALLOWED_CHARS) or is_xss_attempt(term):
        logger.warning("search_rejected kind=security")
        return Outcome.from_rejection(SecurityRejected("Search term contains potentially malicious content"))

    needle = sanitize_input(term.strip()) if term and term.strip() else None
    async with session.begin():
        items = await applicants.search(session, term=needle)
    return Outcome.success(items)


async def get_by_id(session: AsyncSession, applicant_id: int, *, include_deleted: bool = False) -> Outcome[Applicant]:
    async with session.begin():
        record = await applicants.get(session, applicant_id=applicant_id, include_deleted=include_deleted)
    if record is None:
        return Outcome.not_found(f"Applicant with ID {applicant_id} not found")
    return Outcome.success(record)
