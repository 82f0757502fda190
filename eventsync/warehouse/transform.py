# ==============================================================================
# Warehouse Row Transforms
# ==============================================================================
"""
Map warehouse query rows to durable-store rows, attaching idempotent keys.
"""

import re
from datetime import UTC, datetime

from eventsync.base.repositories import (
    VIEW_CTA_CLICKS,
    VIEW_PAGEVIEWS,
    VIEW_SESSIONS,
    VIEW_VIDEO_EVENTS,
)
from eventsync.core.idempotency import (
    cta_click_key,
    pageview_key,
    session_key,
    video_event_key,
)

_SCHEME_AND_HOST = re.compile(r"^https?://[^/]+")


def micros_to_datetime(ts_micros) -> datetime | None:
    """Export timestamps are integer microseconds since the epoch."""
    if ts_micros is None:
        return None
    return datetime.fromtimestamp(int(ts_micros) / 1_000_000, tz=UTC)


def page_path_from_location(page_location: str | None) -> str:
    """``https://example.com/blog?x=1`` -> ``/blog?x=1``; empty -> ``/``"""
    return _SCHEME_AND_HOST.sub("", page_location or "") or "/"


def _session_id(row: dict) -> str | None:
    if row.get("ga_session_id") is None:
        return None
    return session_key(row["user_pseudo_id"], row["ga_session_id"])


def session_row(row: dict) -> dict:
    return {
        "session_id": session_key(row["user_pseudo_id"], row["ga_session_id"]),
        "user_pseudo_id": row["user_pseudo_id"],
        "first_seen_at": micros_to_datetime(row.get("first_ts")),
        "last_seen_at": micros_to_datetime(row.get("last_ts")),
        "country": row.get("country") or None,
        "city": row.get("city") or None,
        "language": row.get("language") or None,
        "device_category": row.get("device_category") or None,
        "os": row.get("os") or None,
        "browser": row.get("browser") or None,
        "referrer": row.get("referrer") or None,
    }


def pageview_row(row: dict) -> dict:
    return {
        "id": pageview_key(row["user_pseudo_id"], row["event_timestamp"]),
        "event_timestamp": micros_to_datetime(row["event_timestamp"]),
        "session_id": _session_id(row),
        "user_pseudo_id": row["user_pseudo_id"],
        "page_path": page_path_from_location(row.get("page_location")),
        "page_title": row.get("page_title") or None,
        "referrer": row.get("page_referrer") or None,
        "locale": row.get("locale") or None,
    }


def video_event_row(row: dict) -> dict:
    return {
        "id": video_event_key(
            row["user_pseudo_id"], row["event_timestamp"], row["event_name"], row.get("video_id")
        ),
        "event_name": row["event_name"],
        "event_timestamp": micros_to_datetime(row["event_timestamp"]),
        "session_id": _session_id(row),
        "user_pseudo_id": row["user_pseudo_id"],
        "video_id": row.get("video_id") or None,
        "video_title": row.get("video_title") or None,
        "gallery": row.get("gallery") or None,
        "player": row.get("player") or None,
        "locale": row.get("locale") or None,
        "current_time_seconds": row.get("current_time_seconds"),
        "progress_percent": row.get("progress_percent"),
        "watch_time_seconds": row.get("watch_time_seconds"),
    }


def cta_click_row(row: dict) -> dict:
    return {
        "id": cta_click_key(row["user_pseudo_id"], row["event_timestamp"], row.get("cta_id")),
        "event_timestamp": micros_to_datetime(row["event_timestamp"]),
        "session_id": _session_id(row),
        "user_pseudo_id": row["user_pseudo_id"],
        "page_path": row.get("page_path") or None,
        "cta_id": row.get("cta_id") or None,
        "locale": row.get("locale") or None,
    }


TRANSFORMS = {
    VIEW_SESSIONS: session_row,
    VIEW_PAGEVIEWS: pageview_row,
    VIEW_VIDEO_EVENTS: video_event_row,
    VIEW_CTA_CLICKS: cta_click_row,
}
