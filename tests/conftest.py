"""Shared fixtures: a temporary store and an in-memory upstream client."""

import asyncio
import html
import json
from typing import Any, Dict, List, Optional

import pytest

from status_history.db import Database
from status_history.errors import TransientFetchError
from status_history.models import Incident
from status_history.store import IncidentStore


def make_incident(
    id: str = "inc1",
    impact: str = "minor",
    started_at: str = "2025-06-01T12:00:00.000Z",
    resolved_at: Optional[str] = "2025-06-01T14:00:00.000Z",
    **overrides: Any,
) -> Incident:
    fields = dict(
        id=id,
        name=f"Incident {id}",
        status="resolved" if resolved_at else "investigating",
        impact=impact,
        created_at=started_at,
        updated_at=resolved_at or started_at,
        started_at=started_at,
        resolved_at=resolved_at,
        shortlink=f"https://stspg.io/{id}",
    )
    fields.update(overrides)
    return Incident(**fields)


def incident_payload(incident: Incident) -> Dict[str, Any]:
    return incident.to_dict()


@pytest.fixture
def database(tmp_path):
    db = Database(tmp_path / "incidents.db")
    yield db
    db.dispose()


@pytest.fixture
def store(database):
    return IncidentStore(database)


class FakeClient:
    """
    Stands in for StatusPageClient.

    Payloads are plain values; an Exception instance is raised instead of
    returned. Every call is recorded.
    """

    def __init__(
        self,
        status: Any = None,
        unresolved: Any = None,
        recent: Any = None,
        pages: Optional[Dict[int, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.status = status
        self.unresolved = unresolved
        self.recent = recent
        self.pages = pages or {}
        self.details = details or {}
        self.calls: List[str] = []
        self.detail_calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @staticmethod
    def _resolve(name: str, value: Any) -> Any:
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise TransientFetchError(name, "HTTP 404", status=404)
        return value

    async def fetch_status(self):
        self.calls.append("status")
        return self._resolve("status", self.status)

    async def fetch_unresolved(self):
        self.calls.append("unresolved")
        return self._resolve("unresolved", self.unresolved)

    async def fetch_recent_incidents(self):
        self.calls.append("incidents")
        return self._resolve("incidents", self.recent)

    async def fetch_history_page(self, page: int) -> str:
        self.calls.append(f"page-{page}")
        return self._resolve(f"page-{page}", self.pages.get(page))

    async def fetch_incident(self, code: str):
        self.detail_calls.append(code)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.001)
            return self._resolve(code, self.details.get(code))
        finally:
            self.in_flight -= 1


def history_page(months: List[Dict[str, Any]]) -> str:
    """A history page body embedding the months listing the way Statuspage does."""
    listing = json.dumps(months, separators=(",", ":"))[1:-1]
    props = (
        '{"page":{"name":"GitHub"},"months":[' + listing + '],"show_component_filter":true}'
    )
    return (
        "<!DOCTYPE html><html><body>"
        f'<div data-react-class="HistoryIndex" data-react-props="{html.escape(props)}"></div>'
        "</body></html>"
    )


def month(name: str, year: int, *incidents) -> Dict[str, Any]:
    """A month entry; incidents are (code, impact, name) tuples."""
    return {
        "name": name,
        "year": year,
        "starts_on": 0,
        "days": 30,
        "incidents": [
            {"code": code, "impact": impact, "name": title} for code, impact, title in incidents
        ],
    }
