"""
Tests for the status deriver: labels, anchor selection and duration text.
"""

from datetime import datetime, timedelta, timezone

import pytest

from status_history.status import derive_status, format_duration

from tests.conftest import make_incident

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def _status(indicator: str) -> dict:
    return {"status": {"indicator": indicator, "description": "desc"}}


def _open(started: datetime, updated: datetime) -> dict:
    return {
        "id": "open",
        "started_at": _iso(started),
        "updated_at": _iso(updated),
        "incident_updates": [{"body": "Investigating"}],
    }


class TestLabels:
    @pytest.mark.parametrize(
        "indicator,label",
        [
            ("critical", "Critical Outage"),
            ("major", "Major Outage"),
            ("minor", "Minor Outage"),
            ("none", "All Systems Operational"),
        ],
    )
    def test_mapping(self, indicator, label):
        assert derive_status(_status(indicator), None, [], now=NOW).label == label

    def test_missing_status_defaults_to_operational(self):
        summary = derive_status(None, None, [], now=NOW)
        assert summary.indicator == "none"
        assert summary.label == "All Systems Operational"


class TestAnchor:
    def test_major_outage_for_three_hours(self):
        unresolved = {"incidents": [_open(NOW - timedelta(hours=3), NOW - timedelta(minutes=5))]}
        summary = derive_status(_status("major"), unresolved, [], now=NOW)
        assert summary.label == "Major Outage"
        assert summary.duration == "for 3 hr"

    def test_earliest_start_among_unresolved(self):
        unresolved = {
            "incidents": [
                _open(NOW - timedelta(hours=2), NOW),
                _open(NOW - timedelta(hours=5), NOW),
            ]
        }
        assert derive_status(_status("minor"), unresolved, [], now=NOW).duration == "for 5 hr"

    def test_operational_with_open_incidents_uses_latest_update(self):
        unresolved = {
            "incidents": [
                _open(NOW - timedelta(days=2), NOW - timedelta(minutes=40)),
                _open(NOW - timedelta(days=3), NOW - timedelta(minutes=10)),
            ]
        }
        assert derive_status(_status("none"), unresolved, [], now=NOW).duration == "for 10 min"

    def test_outage_without_start_times_uses_latest_update(self):
        unresolved = {
            "incidents": [
                {"id": "x", "updated_at": _iso(NOW - timedelta(minutes=25))},
                {"id": "y", "updated_at": _iso(NOW - timedelta(hours=6))},
            ]
        }
        incidents = [make_incident("old", resolved_at=_iso(NOW - timedelta(days=9)))]
        summary = derive_status(_status("major"), unresolved, incidents, now=NOW)
        assert summary.label == "Major Outage"
        assert summary.duration == "for 25 min"

    def test_latest_resolution_when_nothing_open(self):
        incidents = [
            make_incident("a", resolved_at=_iso(NOW - timedelta(days=4))),
            make_incident("b", resolved_at=_iso(NOW - timedelta(days=2))),
            make_incident("c", resolved_at=None),
        ]
        summary = derive_status(_status("none"), {"incidents": []}, incidents, now=NOW)
        assert summary.duration == "for 2 days"
        assert summary.since == (NOW - timedelta(days=2)).isoformat()

    def test_falls_back_to_now(self):
        assert derive_status(None, None, [], now=NOW).duration == "for 1 min"


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds,text",
        [
            (0, "for 1 min"),
            (20, "for 1 min"),
            (90, "for 2 min"),
            (59 * 60, "for 59 min"),
            (3600, "for 1 hr"),
            (5400, "for 2 hr"),
            (23 * 3600, "for 23 hr"),
            (86400, "for 1 day"),
            (86400 * 10.4, "for 10 days"),
        ],
    )
    def test_units(self, seconds, text):
        assert format_duration(seconds) == text
