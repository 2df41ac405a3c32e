from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_applicant_service, get_request_id
from src.api.errors import raise_for_outcome
from src.database import get_db
from src.schemas.applicant import (
    ApplicantCreated,
    ApplicantFilter,
    ApplicantListResponse,
    ApplicantRead,
    CreateApplicantCommand,
    DeleteApplicantCommand,
    UpdateApplicantCommand,
)
from src.services import query_service
from src.services.applicant_service import ApplicantService
from src.services.concurrency import decode_row_version


router = APIRouter(prefix="/applicants", tags=["applicants"])


@router.post("", response_model=ApplicantCreated, status_code=status.HTTP_201_CREATED)
async def create_applicant_endpoint(
    payload: CreateApplicantCommand,
    session: AsyncSession = Depends(get_db),
    service: ApplicantService = Depends(get_applicant_service),
    request_id: str | None = Depends(get_request_id),
) -> ApplicantCreated:
    outcome = await service.create(session, payload, request_id=request_id)
    raise_for_outcome(outcome)
    return ApplicantCreated(id=outcome.value)


@router.get("", response_model=ApplicantListResponse)
async def list_applicants_endpoint(
    search_term: str | None = Query(None, description="Substring match across text fields"),
    min_age: int | None = Query(None),
    max_age: int | None = Query(None),
    country: str | None = Query(None, description="Case-insensitive exact country"),
    hired: bool | None = Query(None),
    applied_from: datetime | None = Query(None, description="Filter: applied_date >= applied_from"),
    applied_to: datetime | None = Query(None, description="Filter: applied_date <= applied_to"),
    sort_by: str = Query("name", description="name | familyName | age | appliedDate | countryOfOrigin | email | id"),
    sort_descending: bool = Query(False),
    page: int = Query(1, description="1-based; clamped to [1, 10000]"),
    page_size: int = Query(50, description="Clamped to [1, 100]"),
    include_deleted: bool = Query(False),
    session: AsyncSession = Depends(get_db),
) -> ApplicantListResponse:
    options = ApplicantFilter(
        search_term=search_term,
        min_age=min_age,
        max_age=max_age,
        country=country,
        hired=hired,
        applied_from=applied_from,
        applied_to=applied_to,
        sort_by=sort_by,
        sort_descending=sort_descending,
        page=page,
        page_size=page_size,
        include_deleted=include_deleted,
    )
    outcome = await query_service.list_filtered(session, options)
    raise_for_outcome(outcome)

    result = outcome.value
    return ApplicantListResponse(
        items=[ApplicantRead.model_validate(a) for a in result.items],
        total_count=result.total_count,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        has_next_page=result.has_next_page,
        has_previous_page=result.has_previous_page,
    )


@router.get("/search", response_model=list[ApplicantRead])
async def search_applicants_endpoint(
    query: str | None = Query(None, description="Substring match on name, family name, email, country"),
    session: AsyncSession = Depends(get_db),
) -> list[ApplicantRead]:
    outcome = await query_service.search(session, query)
    raise_for_outcome(outcome)
    return [ApplicantRead.model_validate(a) for a in outcome.value]


@router.get("/{applicant_id}", response_model=ApplicantRead)
async def get_applicant_endpoint(
    applicant_id: int,
    include_deleted: bool = Query(False),
    session: AsyncSession = Depends(get_db),
) -> ApplicantRead:
    outcome = await query_service.get_by_id(session, applicant_id, include_deleted=include_deleted)
    raise_for_outcome(outcome)
    return ApplicantRead.model_validate(outcome.value)


@router.put("/{applicant_id}", response_model=ApplicantRead)
async def update_applicant_endpoint(
    applicant_id: int,
    payload: UpdateApplicantCommand,
    session: AsyncSession = Depends(get_db),
    service: ApplicantService = Depends(get_applicant_service),
    request_id: str | None = Depends(get_request_id),
) -> ApplicantRead:
    if payload.id is not None and payload.id != applicant_id:
        raise HTTPException(status_code=400, detail="ID mismatch between URL and body")

    command = payload.model_copy(update={"id": applicant_id})
    outcome = await service.update(session, command, request_id=request_id)
    raise_for_outcome(outcome)
    return ApplicantRead.model_validate(outcome.value)


@router.delete("/{applicant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_applicant_endpoint(
    applicant_id: int,
    row_version: str | None = Query(None, description="Base64 concurrency token from the last read"),
    hard_delete: bool = Query(False),
    reason: str | None = Query(None),
    session: AsyncSession = Depends(get_db),
    service: ApplicantService = Depends(get_applicant_service),
    request_id: str | None = Depends(get_request_id),
) -> Response:
    try:
        token = decode_row_version(row_version)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    command = DeleteApplicantCommand(id=applicant_id, row_version=token, hard_delete=hard_delete, reason=reason)
    outcome = await service.delete(session, command, request_id=request_id)
    raise_for_outcome(outcome)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
