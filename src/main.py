import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_exception_handlers
from src.api.v1.router import router as v1_router
from src.config import settings
from src.log_config import setup_logging
from src.services.applicant_service import ApplicantService, MutationPolicy
from src.services.audit import AuditTrail
from src.services.countries import build_catalog

logger = logging.getLogger("applicants.api")


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="Applicant Management API")

    catalog = build_catalog()
    app.state.country_catalog = catalog
    app.state.applicant_service = ApplicantService(
        policy=MutationPolicy.from_settings(),
        audit_trail=AuditTrail(),
        country_lookup=catalog.is_known if settings.country_validation_enabled else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Attach a request id to every response and log a compact access line.

        - If the caller provides X-Request-ID, we reuse it.
        - Otherwise we generate a UUID4.
        """

        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "access request_id=%s method=%s path=%s status=%s duration_ms=%.2f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

    register_exception_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(v1_router, prefix="/api/v1")
    return app


app = create_app()
