"""
Backfill scraper: one-shot history reconstruction.

Walks the configured history pages (newest first), collects incident
codes from months at or after the cutoff year, drops codes already in
the store, then fetches each remaining incident's full record with a
small fixed number of requests in flight and upserts it.

Individual failures (a page, an incident code) are logged and skipped;
only storage failures abort the run.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from status_history import notifier
from status_history.client import StatusPageClient
from status_history.errors import InvalidIncidentError, TransientFetchError
from status_history.history_parser import EmbeddedMonthsParser, HistoryParser
from status_history.models import BackfillReport, HistoryMonth, Incident, TrackerSettings
from status_history.store import IncidentStore

logger = logging.getLogger(__name__)


class Backfiller:
    """
    Reconstructs incident history into the store.

    Attributes:
        client: Upstream client for history pages and incident details.
        store: Incident store to dedup against and write into.
        settings: Cutoff year, pages and batch width.
        parser: Extracts month listings from a history page body.
    """

    def __init__(
        self,
        client: StatusPageClient,
        store: IncidentStore,
        settings: TrackerSettings,
        parser: Optional[HistoryParser] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.settings = settings
        self.parser = parser or EmbeddedMonthsParser()

    async def run(self) -> BackfillReport:
        """Execute the full backfill and return found/inserted counts."""
        notifier.print_backfill_start(self.settings.history_pages, self.settings.cutoff_year)

        codes = await self.collect_codes()
        notifier.print_found(len(codes))

        inserted = await self.ingest(codes)
        report = BackfillReport(
            found=len(codes),
            inserted=inserted,
            failed=len(codes) - inserted,
            total_stored=self.store.count(),
        )
        notifier.print_backfill_summary(report)
        return report

    # ─── Listing ──────────────────────────────────────────────

    async def fetch_months(self, page: int) -> List[HistoryMonth]:
        """Months listed on one history page; empty when the page is unavailable."""
        try:
            body = await self.client.fetch_history_page(page)
        except TransientFetchError as exc:
            logger.warning("Skipping history page %d: %s", page, exc)
            return []

        months = self.parser.parse(body)
        if not months:
            logger.warning("History page %d has no incident listing", page)
        return months

    async def collect_codes(self) -> List[str]:
        """Codes from qualifying months that are not yet stored, deduplicated in page order."""
        existing = self.store.existing_ids()
        codes: Dict[str, None] = {}

        for page in self.settings.history_pages:
            for month in await self.fetch_months(page):
                if month.year < self.settings.cutoff_year:
                    continue

                for incident in month.incidents:
                    if incident.code not in existing:
                        codes.setdefault(incident.code, None)

                notifier.print_month(month.name, month.year, len(month.incidents))

        return list(codes)

    # ─── Details ──────────────────────────────────────────────

    async def ingest(self, codes: List[str]) -> int:
        """
        Fetch and store full records for codes, at most batch_width requests in flight.

        Each record is upserted as soon as it arrives. Failed codes are
        skipped. Returns the number of incidents stored.
        """
        semaphore = asyncio.Semaphore(self.settings.batch_width)
        done = 0

        async def fetch_one(code: str) -> bool:
            nonlocal done
            async with semaphore:
                incident = await self._fetch_incident(code)
            done += 1
            notifier.print_progress(done, len(codes))
            if incident is None:
                return False
            self.store.upsert(incident)
            return True

        tasks = [asyncio.create_task(fetch_one(code), name=f"incident-{code}") for code in codes]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # A storage failure ends the run; stop the remaining fetches with it
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return sum(results)

    async def _fetch_incident(self, code: str) -> Optional[Incident]:
        try:
            payload = await self.client.fetch_incident(code)
        except TransientFetchError as exc:
            logger.warning("Skipping incident %s: %s", code, exc)
            return None

        if payload is None:
            logger.warning("Skipping incident %s: response has no incident", code)
            return None

        try:
            return Incident.from_api(payload)
        except InvalidIncidentError as exc:
            logger.warning("Skipping incident %s: %s", code, exc)
            return None
