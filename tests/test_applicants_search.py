from datetime import datetime, timezone

import pytest

from src.database import SessionLocal
from src.schemas.applicant import DeleteApplicantCommand
from tests._client import get_async_client
from tests._factories import create_command


@pytest.fixture
async def seeded(db, service) -> dict[str, int]:
    ids: dict[str, int] = {}
    for name, family, country in [("Zelda", "Smith", "Egypt"), ("Alice", "Smithers", "Kenya"), ("Maria", "Lopez", "Jordan")]:
        async with SessionLocal() as s:
            outcome = await service.create(
                s,
                create_command(
                    name=name,
                    family_name=family,
                    country_of_origin=country,
                    email_address=f"{name.lower()}@example.com",
                    applied_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
                ),
            )
            ids[name] = outcome.value
    return ids


@pytest.mark.anyio
async def test_search_matches_name_family_email_country(seeded):
    async with get_async_client() as client:
        r = await client.get("/api/v1/applicants/search", params={"query": "smith"})
        assert r.status_code == 200
        assert [i["name"] for i in r.json()] == ["Alice", "Zelda"]

        r = await client.get("/api/v1/applicants/search", params={"query": "KENYA"})
        assert [i["name"] for i in r.json()] == ["Alice"]

        r = await client.get("/api/v1/applicants/search", params={"query": "maria@"})
        assert [i["name"] for i in r.json()] == ["Maria"]

        # Address is not part of the quick search.
        r = await client.get("/api/v1/applicants/search", params={"query": "Main Street"})
        assert r.json() == []


@pytest.mark.anyio
async def test_empty_search_returns_all_live_records(seeded, service):
    async with SessionLocal() as s:
        await service.delete(s, DeleteApplicantCommand(id=seeded["Maria"]))

    async with get_async_client() as client:
        r = await client.get("/api/v1/applicants/search")
        assert [i["name"] for i in r.json()] == ["Alice", "Zelda"]


@pytest.mark.anyio
async def test_search_rejections(seeded):
    async with get_async_client() as client:
        r = await client.get("/api/v1/applicants/search", params={"query": "1; DROP TABLE applicants"})
        assert r.status_code == 400

        r = await client.get("/api/v1/applicants/search", params={"query": "a" * 101})
        assert r.status_code == 400
