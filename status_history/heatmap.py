"""
Heatmap aggregator.

Buckets stored incidents by the UTC calendar day they started on and
lays the last year out as a week-by-day grid, Sunday first.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from dateutil import parser as dateutil_parser
from dateutil.relativedelta import relativedelta

from status_history.models import Heatmap, HeatmapDay, Incident

_DAYS_PER_WEEK = 7


def to_utc(timestamp: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    parsed = dateutil_parser.isoparse(timestamp)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def day_key(timestamp: str) -> str:
    """UTC calendar date of a timestamp as YYYY-MM-DD."""
    return to_utc(timestamp).date().isoformat()


def bucket_by_day(incidents: Iterable[Incident]) -> Dict[str, HeatmapDay]:
    """Group incidents by the UTC day of started_at, summing impact weights."""
    day_map: Dict[str, HeatmapDay] = {}
    for incident in incidents:
        key = day_key(incident.started_at)
        day = day_map.setdefault(key, HeatmapDay(date=key))
        day.severity += incident.weight
        day.count += 1
        day.incidents.append(incident)
    return day_map


def window_start(today: date) -> date:
    """The Sunday on or before the date one year before today."""
    year_ago = today - relativedelta(years=1)
    # weekday(): Monday=0 ... Sunday=6
    return year_ago - timedelta(days=(year_ago.weekday() + 1) % _DAYS_PER_WEEK)


def build_heatmap(incidents: List[Incident], now: Optional[datetime] = None) -> Heatmap:
    """
    Build the year-long heatmap grid.

    Args:
        incidents: All stored incidents (newest first, as the store returns them).
        now: Reference time, defaults to the current UTC time.

    Returns:
        Heatmap whose weeks each hold exactly seven days. Days without
        incidents have severity 0; the last week is completed with the
        days following today.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.astimezone(timezone.utc).date()

    day_map = bucket_by_day(incidents)

    weeks: List[List[HeatmapDay]] = []
    current_week: List[HeatmapDay] = []
    current = window_start(today)

    while current <= today or current_week:
        key = current.isoformat()
        bucket = day_map.get(key)
        current_week.append(
            HeatmapDay(
                date=key,
                severity=bucket.severity if bucket else 0,
                count=bucket.count if bucket else 0,
                incidents=list(bucket.incidents) if bucket else [],
            )
        )

        if len(current_week) == _DAYS_PER_WEEK:
            weeks.append(current_week)
            current_week = []

        current += timedelta(days=1)

    max_severity = max([1] + [day.severity for week in weeks for day in week])

    return Heatmap(
        weeks=weeks,
        day_map=day_map,
        incidents=list(incidents),
        max_severity=max_severity,
    )
