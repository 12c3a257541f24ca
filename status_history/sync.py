"""
Live sync.

Pulls the three live resources through the SWR cache concurrently and
folds the recent-incidents list into the store.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from status_history.cache import SWRCache
from status_history.client import StatusPageClient
from status_history.errors import InvalidIncidentError
from status_history.models import Incident, LiveSnapshot
from status_history.store import IncidentStore

logger = logging.getLogger(__name__)


class LiveSync:
    """Fetches live status and keeps the store current with recent incidents."""

    def __init__(self, client: StatusPageClient, cache: SWRCache, store: IncidentStore) -> None:
        self.client = client
        self.cache = cache
        self.store = store

    async def sync(self) -> LiveSnapshot:
        """
        Fetch status, unresolved and recent incidents, and upsert the latter.

        Returns:
            LiveSnapshot with the status and unresolved payloads, either of
            which is None when neither upstream nor cache has data.
        """
        status, unresolved, recent = await asyncio.gather(
            self.cache.get("status", self.client.fetch_status),
            self.cache.get("unresolved", self.client.fetch_unresolved),
            self.cache.get("incidents", self.client.fetch_recent_incidents),
        )

        if isinstance(recent, dict):
            written = self.store.upsert_many(self._valid_incidents(recent))
            logger.debug("Synced %d recent incidents", written)

        return LiveSnapshot(status=status, unresolved=unresolved)

    @staticmethod
    def _valid_incidents(recent: Dict[str, Any]) -> List[Incident]:
        """Incidents from a recent-incidents payload; malformed records are skipped."""
        incidents: List[Incident] = []
        for item in recent.get("incidents") or []:
            try:
                incidents.append(Incident.from_api(item))
            except InvalidIncidentError as exc:
                logger.warning("Skipping recent incident: %s", exc)
        return incidents
