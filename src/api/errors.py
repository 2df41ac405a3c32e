import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.services.errors import Outcome, ResultKind, SystemFailure

logger = logging.getLogger("applicants.api")


OUTCOME_STATUS: dict[ResultKind, int] = {
    ResultKind.VALIDATION_FAILED: 400,
    ResultKind.SECURITY_REJECTED: 400,
    ResultKind.BUSINESS_RULE_VIOLATION: 400,
    ResultKind.CONCURRENCY_CONFLICT: 409,
    ResultKind.NOT_FOUND: 404,
}


def raise_for_outcome(outcome: Outcome) -> None:
    """Turn a non-OK pipeline outcome into the matching HTTP error."""

    if outcome.ok:
        return
    raise HTTPException(status_code=OUTCOME_STATUS[outcome.kind], detail=outcome.message)


def _get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _envelope(request: Request, status_code: int, detail) -> JSONResponse:
    request_id = _get_request_id(request)
    response = JSONResponse(
        status_code=status_code,
        content={"detail": jsonable_encoder(detail), "request_id": request_id},
    )
    if request_id:
        response.headers["X-Request-ID"] = request_id
    return response


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _envelope(request, exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _envelope(request, 422, exc.errors())

    @app.exception_handler(SystemFailure)
    async def system_failure_handler(request: Request, exc: SystemFailure):
        logger.error(
            "system_failure request_id=%s operation=%s cause=%r", _get_request_id(request), exc.operation, exc.cause
        )
        return _envelope(request, 500, f"Failed to {exc.operation.lower()} applicant")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_exception request_id=%s", _get_request_id(request), exc_info=exc)
        return _envelope(request, 500, "Internal Server Error")
