from fastapi import Request

from src.services.applicant_service import ApplicantService
from src.services.countries import CountryCatalog


def get_applicant_service(request: Request) -> ApplicantService:
    return request.app.state.applicant_service


def get_country_catalog(request: Request) -> CountryCatalog:
    return request.app.state.country_catalog


def get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)
