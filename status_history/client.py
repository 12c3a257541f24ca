"""
Upstream status page client.

Thin wrapper over a shared aiohttp session. Every failure (connection
error, timeout, non-2xx status, undecodable JSON) surfaces as a
TransientFetchError so callers can fall back or skip locally.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from status_history.errors import TransientFetchError
from status_history.models import SourceConfig

logger = logging.getLogger(__name__)

_USER_AGENT = "status-history/1.0"


class StatusPageClient:
    """
    Fetches live resources, incident details and history pages.

    Attributes:
        session: Shared aiohttp session (connection pooling).
        source: Upstream URLs.
        timeout: Total timeout per request, in seconds.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        source: SourceConfig,
        timeout: float = 15.0,
    ) -> None:
        self.session = session
        self.source = source
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get(self, url: str, accept: str) -> str:
        headers = {"Accept": accept, "User-Agent": _USER_AGENT}
        logger.debug("GET %s", url)
        try:
            async with self.session.get(url, headers=headers, timeout=self.timeout) as resp:
                if resp.status >= 400:
                    raise TransientFetchError(url, f"HTTP {resp.status}", status=resp.status)
                return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransientFetchError(url, str(exc) or type(exc).__name__) from exc

    async def get_json(self, url: str) -> Any:
        body = await self._get(url, "application/json")
        try:
            return json.loads(body)
        except ValueError as exc:
            raise TransientFetchError(url, f"invalid JSON: {exc}") from exc

    async def get_text(self, url: str) -> str:
        return await self._get(url, "text/html")

    # ─── Live resources ───────────────────────────────────────

    async def fetch_status(self) -> Dict[str, Any]:
        return await self.get_json(self.source.status_url)

    async def fetch_unresolved(self) -> Dict[str, Any]:
        return await self.get_json(self.source.unresolved_url)

    async def fetch_recent_incidents(self) -> Dict[str, Any]:
        return await self.get_json(self.source.incidents_url)

    # ─── Backfill resources ───────────────────────────────────

    async def fetch_incident(self, code: str) -> Optional[Dict[str, Any]]:
        """Full incident record for a code, or None if the payload has none."""
        data = await self.get_json(self.source.incident_url(code))
        if not isinstance(data, dict):
            return None
        return data.get("incident")

    async def fetch_history_page(self, page: int) -> str:
        return await self.get_text(self.source.history_url(page))
