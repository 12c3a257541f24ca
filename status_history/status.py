"""
Status deriver.

Combines the live status and unresolved-incident payloads with stored
incidents into one label ("Major Outage", ...) and how long it has held.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from status_history.heatmap import to_utc
from status_history.models import Incident, StatusSummary

LABELS: Dict[str, str] = {
    "critical": "Critical Outage",
    "major": "Major Outage",
    "minor": "Minor Outage",
    "none": "All Systems Operational",
}

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR


def _round(value: float) -> int:
    """Round half up."""
    return int(math.floor(value + 0.5))


def format_duration(elapsed_seconds: float) -> str:
    """Render an elapsed time as "for N min", "for N hr" or "for N days"."""
    if elapsed_seconds < _HOUR:
        return f"for {max(1, _round(elapsed_seconds / _MINUTE))} min"
    if elapsed_seconds < _DAY:
        return f"for {_round(elapsed_seconds / _HOUR)} hr"
    days = _round(elapsed_seconds / _DAY)
    return f"for {days} day" if days == 1 else f"for {days} days"


def _anchor(
    indicator: str,
    unresolved: List[Dict[str, Any]],
    incidents: List[Incident],
    now: datetime,
) -> datetime:
    """Pick the moment the current state began."""
    started = [to_utc(inc["started_at"]) for inc in unresolved if inc.get("started_at")]
    if indicator != "none" and started:
        return min(started)

    # Operational again (or no start times) but incidents not yet formally closed
    updated = [to_utc(inc["updated_at"]) for inc in unresolved if inc.get("updated_at")]
    if updated:
        return max(updated)

    resolved = [to_utc(inc.resolved_at) for inc in incidents if inc.resolved_at]
    if resolved:
        return max(resolved)

    return now


def _unresolved_incidents(unresolved: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Open incident objects from the unresolved payload."""
    if not unresolved:
        return []
    return [inc for inc in unresolved.get("incidents") or [] if isinstance(inc, dict)]


def derive_status(
    status: Optional[Dict[str, Any]],
    unresolved: Optional[Dict[str, Any]],
    incidents: List[Incident],
    now: Optional[datetime] = None,
) -> StatusSummary:
    """
    Derive the human-facing status.

    Args:
        status: Live status payload ({"status": {"indicator", "description"}}) or None.
        unresolved: Live unresolved payload ({"incidents": [...]}) or None.
        incidents: Stored incidents.
        now: Reference time, defaults to the current UTC time.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    live = (status or {}).get("status") or {}
    indicator = live.get("indicator") or "none"
    label = LABELS.get(indicator, LABELS["none"])

    anchor = _anchor(indicator, _unresolved_incidents(unresolved), incidents, now)
    elapsed = (now - anchor).total_seconds()

    return StatusSummary(
        indicator=indicator,
        label=label,
        description=live.get("description") or label,
        duration=format_duration(elapsed),
        since=anchor.isoformat(),
    )
