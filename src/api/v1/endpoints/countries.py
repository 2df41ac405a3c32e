from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_country_catalog
from src.database import get_db
from src.schemas.country import CountryRead, CountryRefreshAccepted
from src.services.countries import CountryCatalog
from src.tasks.countries import emit_refresh_countries_task


logger = logging.getLogger("applicants.api")

router = APIRouter(prefix="/countries", tags=["countries"])


@router.get("", response_model=list[CountryRead])
async def list_countries_endpoint(
    session: AsyncSession = Depends(get_db),
    catalog: CountryCatalog = Depends(get_country_catalog),
) -> list[CountryRead]:
    items = await catalog.list_countries(session)
    logger.info("countries_listed count=%s", len(items))
    return [CountryRead.model_validate(c) for c in items]


@router.post("/refresh", response_model=CountryRefreshAccepted, status_code=status.HTTP_202_ACCEPTED)
async def refresh_countries_endpoint() -> CountryRefreshAccepted:
    # Best-effort: the worker may be down, the request is still accepted.
    return CountryRefreshAccepted(queued=emit_refresh_countries_task())
