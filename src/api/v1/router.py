from fastapi import APIRouter

from src.api.v1.endpoints.applicants import router as applicants_router
from src.api.v1.endpoints.countries import router as countries_router

router = APIRouter()


@router.get("/ping")
async def ping():
    return {"ping": "pong"}


router.include_router(applicants_router)
router.include_router(countries_router)
