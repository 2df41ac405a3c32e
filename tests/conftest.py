import os
import tempfile

# The app builds its engine from DATABASE_URL at import time, so this has to run
# before anything under src/ is imported. CI may point it at PostgreSQL instead.
_DB_DIR = tempfile.mkdtemp(prefix="applicants-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}")

import pytest  # noqa: E402

from src.database import SessionLocal, engine  # noqa: E402
from src.models import Base  # noqa: E402
from src.services.applicant_service import ApplicantService  # noqa: E402
from src.services.audit import AuditTrail  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db(anyio_backend):
    """Fresh schema for every test."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def session(db):
    async with SessionLocal() as s:
        yield s


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def service(events) -> ApplicantService:
    return ApplicantService(audit_trail=AuditTrail([events.append]))
