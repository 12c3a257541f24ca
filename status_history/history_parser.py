"""
History page parser.

A history page embeds its month listing as HTML-escaped JSON inside a
larger attribute, e.g.

    ...&quot;months&quot;:[{&quot;name&quot;:&quot;February&quot;, ...}],&quot;show_component_filter...

Extraction takes the text between those structural markers, unescapes
it and parses it as JSON. Anything that does not parse yields an empty
listing; a page without a listing is not an error.
"""

from __future__ import annotations

import html
import json
import logging
import re
from typing import Any, List, Protocol

from status_history.models import HistoryIncident, HistoryMonth

logger = logging.getLogger(__name__)

_MONTHS_RE = re.compile(
    r"&quot;months&quot;:\[(.*?)\],&quot;show_component_filter",
    re.DOTALL,
)
# Same listing when the page carries it unescaped (inline script data)
_RAW_MONTHS_RE = re.compile(r'"months":\[(.*?)\],"show_component_filter', re.DOTALL)


class HistoryParser(Protocol):
    """Turns a history page body into month listings."""

    def parse(self, body: str) -> List[HistoryMonth]:
        ...


def _parse_incident(raw: Any) -> HistoryIncident | None:
    if not isinstance(raw, dict) or not raw.get("code"):
        return None
    return HistoryIncident(
        code=str(raw["code"]),
        impact=str(raw.get("impact") or "none"),
        name=str(raw.get("name") or ""),
    )


def _parse_month(raw: Any) -> HistoryMonth | None:
    if not isinstance(raw, dict):
        return None
    try:
        raw_incidents = raw.get("incidents") or []
        if not isinstance(raw_incidents, list):
            raise TypeError(f"incidents is a {type(raw_incidents).__name__}")

        incidents = [
            inc for inc in (_parse_incident(item) for item in raw_incidents) if inc is not None
        ]
        return HistoryMonth(
            name=str(raw.get("name") or ""),
            year=int(raw["year"]),
            incidents=incidents,
            starts_on=int(raw.get("starts_on") or 0),
            days=int(raw.get("days") or 0),
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Skipping malformed history month %r: %s", raw.get("name"), exc)
        return None


class EmbeddedMonthsParser:
    """Extracts the months listing embedded in a Statuspage history page."""

    def parse(self, body: str) -> List[HistoryMonth]:
        match = _MONTHS_RE.search(body) or _RAW_MONTHS_RE.search(body)
        if not match:
            return []

        decoded = html.unescape(match.group(1))
        try:
            raw_months = json.loads(f"[{decoded}]")
        except ValueError as exc:
            logger.warning("Could not decode history listing: %s", exc)
            return []

        return [m for m in (_parse_month(raw) for raw in raw_months) if m is not None]


def parse_months(body: str) -> List[HistoryMonth]:
    """Parse a history page body with the default parser."""
    return EmbeddedMonthsParser().parse(body)
