import httpx
import pytest
from sqlalchemy import select

from src.database import SessionLocal
from src.main import app
from src.models.country import Country
from src.services.countries import CountryCache, CountryCatalog, CountryClient, CountryData
from tests._client import get_async_client


ALL_COUNTRIES = [
    {"name": {"common": "Kenya", "official": "Republic of Kenya"}, "cca2": "KE", "region": "Africa"},
    {"name": {"common": "Egypt", "official": "Arab Republic of Egypt"}, "cca2": "EG", "region": "Africa"},
    {"name": {"common": "Canada", "official": "Canada"}, "cca2": "CA"},
]


def _handler(calls: list[str]):
    def handle(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path.endswith("/all"):
            return httpx.Response(200, json=ALL_COUNTRIES)
        if request.url.path.endswith("/name/Egypt"):
            assert request.url.params["fullText"] == "true"
            return httpx.Response(200, json=[ALL_COUNTRIES[1]])
        if request.url.path.endswith("/name/Unstable"):
            return httpx.Response(503)
        return httpx.Response(404, json={"status": 404, "message": "Not Found"})

    return handle


def _client(calls: list[str]) -> CountryClient:
    return CountryClient("https://countries.test/v3.1", transport=httpx.MockTransport(_handler(calls)))


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.anyio
async def test_validate_answers_true_false_or_unknown():
    client = _client([])

    assert await client.validate("Egypt") is True
    assert await client.validate("Atlantis") is False
    assert await client.validate("Unstable") is None
    assert await client.validate("   ") is False


@pytest.mark.anyio
async def test_validate_network_error_is_unknown():
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = CountryClient("https://countries.test/v3.1", transport=httpx.MockTransport(boom))
    assert await client.validate("Egypt") is None


@pytest.mark.anyio
async def test_fetch_all_parses_and_sorts():
    countries = await _client([]).fetch_all()
    assert countries == [
        CountryData(name="Canada", code="CA", region="Unknown"),
        CountryData(name="Egypt", code="EG", region="Africa"),
        CountryData(name="Kenya", code="KE", region="Africa"),
    ]


def test_cache_entries_expire_after_ttl():
    clock = _Clock()
    cache = CountryCache(60, clock=clock)
    cache.set("k", ["x"])

    clock.now += 59
    assert cache.get("k") == ["x"]

    clock.now += 1
    assert cache.get("k") is None
    assert cache.get("missing") is None


@pytest.mark.anyio
async def test_catalog_goes_cache_then_database_then_remote(db):
    calls: list[str] = []
    catalog = CountryCatalog(client=_client(calls), cache=CountryCache(3600))

    async with SessionLocal() as s:
        first = await catalog.list_countries(s)
    assert [c.name for c in first] == ["Canada", "Egypt", "Kenya"]
    assert calls == ["/v3.1/all"]

    async with SessionLocal() as s:
        rows = (await s.execute(select(Country).order_by(Country.name))).scalars().all()
    assert [r.code for r in rows] == ["CA", "EG", "KE"]

    # Cached: no further remote calls.
    async with SessionLocal() as s:
        await catalog.list_countries(s)
    assert calls == ["/v3.1/all"]

    # A fresh catalog (empty cache) reads the table instead of the API.
    other_calls: list[str] = []
    fresh = CountryCatalog(client=_client(other_calls), cache=CountryCache(3600))
    async with SessionLocal() as s:
        again = await fresh.list_countries(s)
    assert [c.name for c in again] == ["Canada", "Egypt", "Kenya"]
    assert other_calls == []


@pytest.mark.anyio
async def test_catalog_refresh_upserts(db):
    catalog = CountryCatalog(client=_client([]), cache=CountryCache(3600))

    async with SessionLocal() as s:
        assert await catalog.refresh(s) == 3
    async with SessionLocal() as s:
        assert await catalog.refresh(s) == 3
        count = len((await s.execute(select(Country))).scalars().all())
    assert count == 3


@pytest.mark.anyio
async def test_is_known_caches_definite_answers_only():
    calls: list[str] = []
    catalog = CountryCatalog(client=_client(calls), cache=CountryCache(3600))

    assert await catalog.is_known("Egypt") is True
    assert await catalog.is_known("egypt ") is True
    assert await catalog.is_known("Unstable") is None
    assert await catalog.is_known("Unstable") is None
    assert calls == ["/v3.1/name/Egypt", "/v3.1/name/Unstable", "/v3.1/name/Unstable"]


@pytest.mark.anyio
async def test_countries_endpoint(db, monkeypatch):
    catalog = CountryCatalog(client=_client([]), cache=CountryCache(3600))
    monkeypatch.setattr(app.state, "country_catalog", catalog)

    async with get_async_client() as client:
        r = await client.get("/api/v1/countries")
        assert r.status_code == 200
        assert r.json()[1] == {"name": "Egypt", "code": "EG", "region": "Africa"}


@pytest.mark.anyio
async def test_refresh_endpoint_accepts_even_without_worker(monkeypatch):
    monkeypatch.delenv("CELERY_ENABLED", raising=False)

    async with get_async_client() as client:
        r = await client.post("/api/v1/countries/refresh")
        assert r.status_code == 202
        assert r.json() == {"status": "accepted", "queued": False}
