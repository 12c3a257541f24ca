"""
Persistent incident store.

Idempotent upserts keyed by incident id (full replace, last write wins)
and an ordered read of everything stored. Also holds the cache table
used by the SWR cache.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from status_history.db import CacheRecord, Database, IncidentRecord
from status_history.errors import StorageError
from status_history.models import Incident

logger = logging.getLogger(__name__)


def _to_record(incident: Incident) -> IncidentRecord:
    return IncidentRecord(
        id=incident.id,
        name=incident.name,
        status=incident.status,
        created_at=incident.created_at,
        updated_at=incident.updated_at,
        resolved_at=incident.resolved_at,
        impact=incident.impact,
        shortlink=incident.shortlink,
        started_at=incident.started_at,
    )


def _to_incident(record: IncidentRecord) -> Incident:
    return Incident(
        id=record.id,
        name=record.name,
        status=record.status,
        impact=record.impact,
        created_at=record.created_at,
        updated_at=record.updated_at,
        started_at=record.started_at,
        resolved_at=record.resolved_at,
        shortlink=record.shortlink or "",
    )


class IncidentStore:
    """
    Read/write access to the incident and cache tables.

    Constructed once per process and passed to every component that
    needs storage.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    # ─── Incidents ────────────────────────────────────────────

    def upsert(self, incident: Incident) -> None:
        """Insert the incident, or replace every field of the stored row."""
        self.upsert_many([incident])

    def upsert_many(self, incidents: Iterable[Incident]) -> int:
        """Upsert a batch in one transaction. Returns the number written."""
        written = 0
        try:
            with self.database.session_scope() as session:
                for incident in incidents:
                    session.merge(_to_record(incident))
                    written += 1
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to write incidents: {exc}") from exc
        return written

    def list_all(self) -> List[Incident]:
        """All stored incidents, newest started_at first."""
        with self.database.session_scope() as session:
            records = session.execute(
                select(IncidentRecord).order_by(IncidentRecord.started_at.desc())
            ).scalars().all()
            return [_to_incident(r) for r in records]

    def existing_ids(self) -> Set[str]:
        with self.database.session_scope() as session:
            return set(session.execute(select(IncidentRecord.id)).scalars().all())

    def count(self) -> int:
        with self.database.session_scope() as session:
            return session.execute(select(func.count()).select_from(IncidentRecord)).scalar_one()

    # ─── Cache entries ────────────────────────────────────────

    def get_cache_entry(self, key: str) -> Optional[Tuple[str, int]]:
        """Return (value, fetched_at_ms) for a cache key, or None."""
        with self.database.session_scope() as session:
            record = session.get(CacheRecord, key)
            if record is None:
                return None
            return record.value, record.fetched_at

    def put_cache_entry(self, key: str, value: str, fetched_at: int) -> None:
        """Replace the cache row for key."""
        try:
            with self.database.session_scope() as session:
                session.merge(CacheRecord(key=key, value=value, fetched_at=fetched_at))
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to write cache entry {key!r}: {exc}") from exc
        logger.debug("Cache entry %s written", key)
