"""Admin dashboard aggregates built from the contacts and event tables."""

from __future__ import annotations

import json
import re
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

RECENT_LEADS = 10
TOP_PAGES = 10
RECENT_ACTIVITY = 20
FORM_EVENTS = ("contact_form_submission", "form_submit")

_ORIGIN = re.compile(r"^https?://[^/]+")
_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)

Row = Mapping[str, str]


def empty_stats() -> Dict[str, Any]:
    """Payload served when no spreadsheet is configured."""
    return {
        "leads": {"total": 0, "thisWeek": 0, "thisMonth": 0, "recent": []},
        "events": {"total": 0, "pageViews": 0, "formSubmissions": 0, "uniqueVisitors": 0},
        "topPages": [],
        "recentActivity": [],
        "configured": False,
    }


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed); naive values are UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _payload(row: Row) -> Dict[str, Any]:
    try:
        payload = json.loads(row.get("payload") or "{}")
    except json.JSONDecodeError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _newest_first(rows: Sequence[Row], column: str) -> List[Row]:
    return sorted(rows, key=lambda row: parse_timestamp(row.get(column)) or _EPOCH, reverse=True)


def dashboard_stats(
    contacts: Sequence[Row],
    events: Sequence[Row],
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    created = [parse_timestamp(row.get("created_at")) for row in contacts]
    this_week = sum(1 for stamp in created if stamp is not None and stamp >= week_ago)
    this_month = sum(1 for stamp in created if stamp is not None and stamp >= month_ago)

    page_views = [row for row in events if row.get("event_type") == "page_view"]
    visitors = {
        str(payload["visitorId"])
        for payload in map(_payload, events)
        if payload.get("visitorId")
    }
    page_counts: Counter[str] = Counter()
    for row in page_views:
        url = str(_payload(row).get("url") or "")
        page_counts[_ORIGIN.sub("", url) or "/"] += 1

    return {
        "leads": {
            "total": len(contacts),
            "thisWeek": this_week,
            "thisMonth": this_month,
            "recent": [dict(row) for row in _newest_first(contacts, "created_at")[:RECENT_LEADS]],
        },
        "events": {
            "total": len(events),
            "pageViews": len(page_views),
            "formSubmissions": sum(1 for row in events if row.get("event_type") in FORM_EVENTS),
            "uniqueVisitors": len(visitors),
        },
        "topPages": [
            {"path": path, "count": count} for path, count in page_counts.most_common(TOP_PAGES)
        ],
        "recentActivity": [
            {
                "id": row.get("id", ""),
                "type": row.get("event_type", ""),
                "layer": row.get("layer", ""),
                "timestamp": row.get("timestamp", ""),
                "agent": row.get("agent_id", ""),
            }
            for row in _newest_first(events, "timestamp")[:RECENT_ACTIVITY]
        ],
        "configured": True,
    }


__all__ = ["dashboard_stats", "empty_stats", "parse_timestamp"]
