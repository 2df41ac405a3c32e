from datetime import datetime, timezone

import pytest

from src.database import SessionLocal
from src.schemas.applicant import ApplicantFilter, DeleteApplicantCommand
from src.services import query_service
from src.services.errors import ResultKind
from tests._client import get_async_client
from tests._factories import create_command


SEED = [
    # name, family name, age, country, hired, day
    ("Diana", "Evans", 50, "Kenya", False, 4),
    ("Alice", "Adams", 22, "Egypt", False, 1),
    ("Emily", "Baker", 41, "Egypt", True, 5),
    ("Carla", "Clark", 28, "Jordan", True, 3),
    ("Bella", "Brown", 35, "Egypt", False, 2),
]


@pytest.fixture
async def seeded(db, service) -> dict[str, int]:
    ids: dict[str, int] = {}
    for name, family, age, country, hired, day in SEED:
        async with SessionLocal() as s:
            outcome = await service.create(
                s,
                create_command(
                    name=name,
                    family_name=family,
                    age=age,
                    country_of_origin=country,
                    hired=hired,
                    email_address=f"{name.lower()}@example.com",
                    applied_date=datetime(2024, 1, day, tzinfo=timezone.utc),
                ),
            )
            assert outcome.ok, outcome.message
            ids[name] = outcome.value
    return ids


@pytest.mark.anyio
async def test_list_defaults_sort_by_name(seeded):
    async with get_async_client() as client:
        r = await client.get("/api/v1/applicants")
        assert r.status_code == 200
        body = r.json()

    assert body["total_count"] == 5
    assert body["page"] == 1
    assert body["page_size"] == 50
    assert body["total_pages"] == 1
    assert body["has_next_page"] is False
    assert body["has_previous_page"] is False
    assert [i["name"] for i in body["items"]] == ["Alice", "Bella", "Carla", "Diana", "Emily"]


@pytest.mark.anyio
async def test_list_clamps_paging(seeded):
    async with get_async_client() as client:
        r = await client.get("/api/v1/applicants", params={"page_size": 500, "page": 0})
        assert r.status_code == 200
        body = r.json()
        assert body["page_size"] == 100
        assert body["page"] == 1

        r = await client.get("/api/v1/applicants", params={"page_size": 0})
        assert r.json()["page_size"] == 1


@pytest.mark.anyio
async def test_list_pagination_metadata(seeded):
    async with get_async_client() as client:
        r = await client.get("/api/v1/applicants", params={"page_size": 2, "page": 2})
        body = r.json()

    assert [i["name"] for i in body["items"]] == ["Carla", "Diana"]
    assert body["total_count"] == 5
    assert body["total_pages"] == 3
    assert body["has_next_page"] is True
    assert body["has_previous_page"] is True


@pytest.mark.anyio
async def test_list_sort_keys(seeded):
    async with get_async_client() as client:
        r = await client.get("/api/v1/applicants", params={"sort_by": "age", "sort_descending": True})
        assert [i["age"] for i in r.json()["items"]] == [50, 41, 35, 28, 22]

        for key in ("familyName", "family_name", "FAMILYNAME"):
            r = await client.get("/api/v1/applicants", params={"sort_by": key})
            assert r.status_code == 200
            assert [i["family_name"] for i in r.json()["items"]] == ["Adams", "Baker", "Brown", "Clark", "Evans"]

        r = await client.get("/api/v1/applicants", params={"sort_by": "appliedDate"})
        assert [i["name"] for i in r.json()["items"]] == ["Alice", "Bella", "Carla", "Diana", "Emily"]

        r = await client.get("/api/v1/applicants", params={"sort_by": "salary"})
        assert r.status_code == 400


@pytest.mark.anyio
async def test_list_filters(seeded):
    async with get_async_client() as client:
        r = await client.get("/api/v1/applicants", params={"min_age": 30, "max_age": 45})
        assert sorted(i["name"] for i in r.json()["items"]) == ["Bella", "Emily"]

        r = await client.get("/api/v1/applicants", params={"country": "EGYPT"})
        assert r.json()["total_count"] == 3

        r = await client.get("/api/v1/applicants", params={"hired": True})
        assert sorted(i["name"] for i in r.json()["items"]) == ["Carla", "Emily"]

        r = await client.get("/api/v1/applicants", params={"search_term": "BAK"})
        assert [i["name"] for i in r.json()["items"]] == ["Emily"]

        r = await client.get(
            "/api/v1/applicants",
            params={"applied_from": "2024-01-02T00:00:00Z", "applied_to": "2024-01-03T00:00:00Z"},
        )
        assert sorted(i["name"] for i in r.json()["items"]) == ["Bella", "Carla"]


@pytest.mark.anyio
async def test_list_rejects_bad_filters(seeded):
    async with get_async_client() as client:
        r = await client.get("/api/v1/applicants", params={"min_age": 50, "max_age": 20})
        assert r.status_code == 400

        r = await client.get(
            "/api/v1/applicants",
            params={"applied_from": "2024-02-01T00:00:00Z", "applied_to": "2024-01-01T00:00:00Z"},
        )
        assert r.status_code == 400

        r = await client.get("/api/v1/applicants", params={"search_term": "x; DROP TABLE applicants"})
        assert r.status_code == 400

        r = await client.get("/api/v1/applicants", params={"search_term": "a" * 101})
        assert r.status_code == 400

        r = await client.get("/api/v1/applicants", params={"country": "E" * 51})
        assert r.status_code == 400


@pytest.mark.anyio
async def test_soft_deleted_rows_only_with_include_deleted(seeded, service):
    async with SessionLocal() as s:
        outcome = await service.delete(s, DeleteApplicantCommand(id=seeded["Alice"]))
        assert outcome.ok

    async with SessionLocal() as s:
        visible = await query_service.list_filtered(s, ApplicantFilter())
        everything = await query_service.list_filtered(s, ApplicantFilter(include_deleted=True))

    assert visible.value.total_count == 4
    assert "Alice" not in [a.name for a in visible.value.items]
    assert everything.value.total_count == 5


@pytest.mark.anyio
async def test_list_outcome_kinds(seeded):
    async with SessionLocal() as s:
        bad_sort = await query_service.list_filtered(s, ApplicantFilter(sort_by="nope"))
        xss = await query_service.list_filtered(s, ApplicantFilter(search_term="<script>x</script>"))

    assert bad_sort.kind is ResultKind.VALIDATION_FAILED
    assert xss.kind is ResultKind.SECURITY_REJECTED
