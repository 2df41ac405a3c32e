"""Country catalog backed by the REST Countries API.

Lookups go cache -> database -> remote API. Remote failures are never fatal:
``CountryClient.validate`` answers ``None`` ("could not decide") and the catalog
falls back to whatever it already has.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import time
from typing import Any
from urllib.parse import quote

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.crud.country import countries


logger = logging.getLogger("applicants.countries")

COUNTRY_LIST_KEY = "country_list"


@dataclass(frozen=True)
class CountryData:
    name: str
    code: str | None = None
    region: str | None = None


def _parse_country(item: dict[str, Any]) -> CountryData | None:
    name = (item.get("name") or {}).get("common")
    if not name:
        return None
    return CountryData(name=name, code=item.get("cca2"), region=item.get("region") or "Unknown")


class CountryClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.country_api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.country_api_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def validate(self, name: str | None) -> bool | None:
        """True/False when the API answers, None when it cannot be reached."""

        if name is None or not name.strip():
            return False

        url = f"{self.base_url}/name/{quote(name.strip())}"
        try:
            async with self._client() as client:
                response = await client.get(url, params={"fullText": "true"})
        except httpx.HTTPError as e:
            logger.warning("country_validate_unavailable country=%s error=%s", name, e)
            return None

        if response.status_code == 404:
            return False
        if response.status_code != 200:
            logger.warning("country_validate_failed country=%s status=%s", name, response.status_code)
            return None

        try:
            payload = response.json()
        except ValueError:
            return None
        return isinstance(payload, list) and len(payload) > 0

    async def fetch_all(self) -> list[CountryData]:
        async with self._client() as client:
            response = await client.get(f"{self.base_url}/all", params={"fields": "name,cca2,region"})
            response.raise_for_status()
            payload = response.json()

        parsed = (_parse_country(item) for item in payload or [])
        return sorted((c for c in parsed if c is not None), key=lambda c: c.name)


class CountryCache:
    """Tiny TTL cache. One instance per catalog, no module-level state."""

    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        hit = self._store.get(key)
        if hit is None:
            return None
        expires_at, value = hit
        if self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._store[key] = (self._clock() + self.ttl_seconds, value)


class CountryCatalog:
    def __init__(self, *, client: CountryClient, cache: CountryCache) -> None:
        self._client = client
        self._cache = cache

    async def list_countries(self, session: AsyncSession) -> list[CountryData]:
        cached = self._cache.get(COUNTRY_LIST_KEY)
        if cached is not None:
            return cached

        async with session.begin():
            rows = await countries.list_active(session)
            result = [CountryData(name=r.name, code=r.code, region=r.region) for r in rows]

            if not result:
                logger.info("country_catalog_empty fetching=remote")
                result = await self._fetch_remote()
                for c in result:
                    await countries.upsert(session, name=c.name, code=c.code, region=c.region)

        if result:
            self._cache.set(COUNTRY_LIST_KEY, result)
        return result

    async def refresh(self, session: AsyncSession) -> int:
        """Re-fetch the remote list and upsert it. Returns the number of rows written."""

        fetched = await self._fetch_remote()
        if not fetched:
            return 0

        async with session.begin():
            for c in fetched:
                await countries.upsert(session, name=c.name, code=c.code, region=c.region)

        self._cache.set(COUNTRY_LIST_KEY, fetched)
        logger.info("country_catalog_refreshed count=%s", len(fetched))
        return len(fetched)

    async def is_known(self, name: str) -> bool | None:
        key = f"valid:{name.strip().lower()}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        known = await self._client.validate(name)
        if known is not None:
            self._cache.set(key, known)
        return known

    async def _fetch_remote(self) -> list[CountryData]:
        try:
            return await self._client.fetch_all()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("country_fetch_failed error=%s", e)
            return []


def build_catalog(*, transport: httpx.AsyncBaseTransport | None = None) -> CountryCatalog:
    return CountryCatalog(
        client=CountryClient(transport=transport),
        cache=CountryCache(settings.country_cache_ttl_seconds),
    )
