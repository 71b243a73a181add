"""
WarEra API client.

The public API is tRPC over GET: ``GET {base}/{procedure}?input=<json>``,
with the payload under ``result.data``. See https://api2.warera.io/openapi.json.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import DEFAULT_WARERA_API_BASE

log = logging.getLogger("embassy.warera")

# Statuses the API uses for ids that do not resolve to anything
_NOT_FOUND_STATUSES = {400, 404}


class WarEraError(Exception):
    """Base class for WarEra client failures."""


class WarEraUnavailable(WarEraError):
    """The API could not be reached or answered with something unusable."""


@dataclass(frozen=True)
class WarEraUser:
    id: str
    username: str
    country_id: Optional[str] = None
    level: Optional[int] = None
    experience: Optional[int] = None


@dataclass(frozen=True)
class WarEraCountry:
    id: str
    name: str


class WarEraClient:
    """Thin async client for the handful of procedures the bot needs."""

    def __init__(
        self,
        base_url: str = DEFAULT_WARERA_API_BASE,
        *,
        timeout_seconds: float = 15,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    async def start(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
            self._owns_session = True

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "WarEraClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _query(self, procedure: str, payload: Dict[str, Any]) -> Optional[Any]:
        """Run one tRPC query. ``None`` means the API reported not-found."""
        if self._session is None:
            await self.start()
        url = f"{self.base_url}/{procedure}"
        params = {"input": json.dumps(payload)}
        try:
            async with self._session.get(url, params=params) as resp:
                if resp.status in _NOT_FOUND_STATUSES:
                    log.info("WarEra %s %s -> %d", procedure, payload, resp.status)
                    return None
                if resp.status >= 400:
                    body = await resp.text()
                    log.error("WarEra API error: %s %s -> %d %s", procedure, payload, resp.status, body[:300])
                    raise WarEraUnavailable(f"{procedure} returned HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error("WarEra request %s failed: %s", procedure, e)
            raise WarEraUnavailable(f"{procedure} request failed: {e}") from e
        except ValueError as e:
            raise WarEraUnavailable(f"{procedure} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise WarEraUnavailable(f"{procedure} returned an unexpected payload")
        error = data.get("error")
        if error:
            code = (error.get("data") or {}).get("code") if isinstance(error, dict) else None
            if code == "NOT_FOUND":
                return None
            raise WarEraUnavailable(f"{procedure} failed: {code or error}")
        return (data.get("result") or {}).get("data")

    async def search_user_ids(self, text: str) -> List[str]:
        """Global search; returns every matching user id."""
        data = await self._query("search.searchAnything", {"searchText": text})
        if not isinstance(data, dict):
            return []
        return [str(user_id) for user_id in data.get("userIds") or []]

    async def get_user(self, user_id: str) -> Optional[WarEraUser]:
        data = await self._query("user.getUserLite", {"userId": str(user_id)})
        if not isinstance(data, dict) or not data.get("_id"):
            return None
        leveling = data.get("leveling") or {}
        country = data.get("country")
        return WarEraUser(
            id=str(data["_id"]),
            username=data.get("username") or "",
            country_id=str(country) if country else None,
            level=leveling.get("level"),
            experience=leveling.get("totalXp"),
        )

    async def get_country(self, country_id: str) -> Optional[WarEraCountry]:
        data = await self._query("country.getCountryById", {"countryId": str(country_id)})
        if not isinstance(data, dict) or not data.get("_id"):
            return None
        return WarEraCountry(id=str(data["_id"]), name=data.get("name") or "")

    async def get_all_countries(self) -> List[WarEraCountry]:
        data = await self._query("country.getAllCountries", {})
        if not isinstance(data, list):
            return []
        return [
            WarEraCountry(id=str(item["_id"]), name=item.get("name") or "")
            for item in data
            if isinstance(item, dict) and item.get("_id")
        ]
