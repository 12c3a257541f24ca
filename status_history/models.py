"""
Data models for the status history tracker.

Defines structured representations for incidents, the history-page
listing, heatmap cells, derived status, and tracker configuration.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from status_history.errors import InvalidIncidentError

# Severity weights per impact level
IMPACT_WEIGHTS: Dict[str, int] = {
    "critical": 4,
    "major": 3,
    "minor": 2,
    "none": 1,
}

_REQUIRED_FIELDS = (
    "id",
    "name",
    "status",
    "impact",
    "created_at",
    "updated_at",
    "started_at",
)


def impact_weight(impact: str) -> int:
    """Weight of an impact level; unknown levels count as 1."""
    return IMPACT_WEIGHTS.get(impact, 1)


@dataclass(frozen=True)
class Incident:
    """
    A single status-feed incident.

    Attributes:
        id: Opaque, globally unique incident identifier.
        name: Human-readable incident title.
        status: Lifecycle state (investigating, resolved, ...).
        impact: One of critical, major, minor, none.
        created_at: ISO-8601 creation timestamp.
        updated_at: ISO-8601 last update timestamp.
        started_at: ISO-8601 start timestamp.
        resolved_at: ISO-8601 resolution timestamp, None while open.
        shortlink: External reference URL.
    """

    id: str
    name: str
    status: str
    impact: str
    created_at: str
    updated_at: str
    started_at: str
    resolved_at: Optional[str] = None
    shortlink: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Incident":
        """Build an Incident from an upstream JSON object."""
        if not isinstance(payload, dict):
            raise InvalidIncidentError(f"expected an object, got {type(payload).__name__}")

        missing = [key for key in _REQUIRED_FIELDS if payload.get(key) is None]
        if missing:
            raise InvalidIncidentError(
                f"incident {payload.get('id', '?')} is missing {', '.join(missing)}"
            )

        return cls(
            id=str(payload["id"]),
            name=payload["name"],
            status=payload["status"],
            impact=payload["impact"],
            created_at=payload["created_at"],
            updated_at=payload["updated_at"],
            started_at=payload["started_at"],
            resolved_at=payload.get("resolved_at"),
            shortlink=payload.get("shortlink") or "",
        )

    @property
    def weight(self) -> int:
        return impact_weight(self.impact)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HistoryIncident:
    """One incident tuple as listed on a history page."""

    code: str
    impact: str
    name: str


@dataclass(frozen=True)
class HistoryMonth:
    """One month block of a history page listing."""

    name: str
    year: int
    incidents: List[HistoryIncident] = field(default_factory=list)
    starts_on: int = 0
    days: int = 0


@dataclass
class HeatmapDay:
    """One UTC calendar day in the heatmap grid."""

    date: str  # YYYY-MM-DD
    severity: int = 0
    count: int = 0
    incidents: List[Incident] = field(default_factory=list)


@dataclass
class Heatmap:
    """The year-long heatmap grid plus the data it was built from."""

    weeks: List[List[HeatmapDay]]
    day_map: Dict[str, HeatmapDay]
    incidents: List[Incident]
    max_severity: int = 1

    @property
    def days(self) -> List[HeatmapDay]:
        return [day for week in self.weeks for day in week]


@dataclass(frozen=True)
class StatusSummary:
    """Human-facing status label and how long it has held."""

    indicator: str
    label: str
    description: str
    duration: str
    since: str


@dataclass
class LiveSnapshot:
    """Live upstream payloads returned by a sync (each may be None)."""

    status: Optional[Dict[str, Any]] = None
    unresolved: Optional[Dict[str, Any]] = None


@dataclass
class BackfillReport:
    """Outcome of one backfill run."""

    found: int = 0
    inserted: int = 0
    failed: int = 0
    total_stored: int = 0


@dataclass
class SourceConfig:
    """Configuration for the upstream status page."""

    name: str = "GitHub"
    base_url: str = "https://www.githubstatus.com"

    @property
    def status_url(self) -> str:
        return f"{self.base_url}/api/v2/status.json"

    @property
    def unresolved_url(self) -> str:
        return f"{self.base_url}/api/v2/incidents/unresolved.json"

    @property
    def incidents_url(self) -> str:
        return f"{self.base_url}/api/v2/incidents.json"

    def incident_url(self, code: str) -> str:
        return f"{self.base_url}/api/v2/incidents/{code}.json"

    def history_url(self, page: int) -> str:
        return f"{self.base_url}/history?page={page}"


@dataclass
class TrackerSettings:
    """Global tracker settings."""

    log_level: str = "INFO"
    db_path: str = "incidents.db"
    cache_ttl: float = 60.0  # seconds
    cache_policy: str = "blocking"  # "blocking" or "background"
    cutoff_year: int = 2025
    history_pages: List[int] = field(default_factory=lambda: [1, 2, 3, 4, 5])
    months_per_page: int = 3
    batch_width: int = 5
    request_timeout: float = 15.0
