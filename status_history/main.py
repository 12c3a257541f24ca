"""
Main entry point: the StatusHistory orchestrator.

Builds the store, cache and upstream client once per process and hands
them to the backfill job or the live sync.

Usage:
    python -m status_history.main backfill   # one-shot history scrape
    python -m status_history.main            # live sync + status line
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import List, Optional, Tuple

import aiohttp

from status_history import notifier
from status_history.backfill import Backfiller
from status_history.cache import SWRCache
from status_history.client import StatusPageClient
from status_history.config import load_config
from status_history.db import Database
from status_history.heatmap import build_heatmap
from status_history.models import BackfillReport, Heatmap, SourceConfig, StatusSummary, TrackerSettings
from status_history.status import derive_status
from status_history.store import IncidentStore
from status_history.sync import LiveSync


class StatusHistory:
    """
    Top-level orchestrator.

    Owns the database, store and SWR cache, and the shared aiohttp
    session for the duration of a run.
    """

    def __init__(self, source: SourceConfig, settings: TrackerSettings) -> None:
        self.source = source
        self.settings = settings
        self.database = Database(settings.db_path)
        self.store = IncidentStore(self.database)
        self.cache = SWRCache(self.store, ttl=settings.cache_ttl, policy=settings.cache_policy)

    def _session(self) -> aiohttp.ClientSession:
        # Shared session; caps parallel connections to the upstream host
        connector = aiohttp.TCPConnector(limit_per_host=self.settings.batch_width)
        return aiohttp.ClientSession(connector=connector)

    async def backfill(self) -> BackfillReport:
        async with self._session() as session:
            client = StatusPageClient(session, self.source, self.settings.request_timeout)
            return await Backfiller(client, self.store, self.settings).run()

    async def snapshot(self) -> Tuple[StatusSummary, Heatmap]:
        """Run one live sync and derive the status and heatmap from it."""
        async with self._session() as session:
            client = StatusPageClient(session, self.source, self.settings.request_timeout)
            live = await LiveSync(client, self.cache, self.store).sync()
            await self.cache.drain()

        heatmap = build_heatmap(self.store.list_all())
        summary = derive_status(live.status, live.unresolved, heatmap.incidents)
        return summary, heatmap

    def close(self) -> None:
        self.database.dispose()


async def async_main(argv: List[str]) -> None:
    """Async entry point."""
    source, settings = load_config()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = StatusHistory(source, settings)
    notifier.print_banner(source.name)
    try:
        if argv and argv[0] == "backfill":
            await app.backfill()
        else:
            summary, heatmap = await app.snapshot()
            notifier.print_status(summary, heatmap)
    finally:
        app.close()


def main(argv: Optional[List[str]] = None) -> None:
    """Sync entry point."""
    try:
        asyncio.run(async_main(sys.argv[1:] if argv is None else argv))
    except KeyboardInterrupt:
        notifier.print_shutdown()
        sys.exit(0)


if __name__ == "__main__":
    main()
