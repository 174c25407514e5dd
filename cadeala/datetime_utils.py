"""
Date and time helpers shared by the admin listings.

Timestamps are stored as ISO 8601 strings by the web app, as Firestore
timestamps by the SDK, and occasionally as epoch numbers by older
documents; `parse_timestamp` accepts all three.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

# Anything above this is an epoch in milliseconds
_MS_THRESHOLD = 100_000_000_000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a stored timestamp into an aware UTC datetime, None if unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, dict):
        # Serialized Firestore timestamp
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float)):
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def timestamp_sort_key(value: Any) -> float:
    """Epoch seconds for sorting; missing or unparseable values sort as 0."""
    parsed = parse_timestamp(value)
    return parsed.timestamp() if parsed else 0.0


def current_timestamp() -> str:
    """Current time as an ISO 8601 string with millisecond precision."""
    return _utcnow().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_datetime(value: Any) -> str:
    """e.g. "January 15, 2024 at 02:30 PM"."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year} at {parsed.strftime('%I:%M %p')}"


def format_date(value: Any) -> str:
    """e.g. "Jan 15, 2024"."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} ago"


def get_relative_time(value: Any, now: datetime | None = None) -> str:
    """Coarse relative time; months are 30 days and years 12 months."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    now = now or _utcnow()
    seconds = int((now - parsed).total_seconds())

    if seconds < 60:
        return "Just now"
    minutes = seconds // 60
    if minutes < 60:
        return _plural(minutes, "minute")
    hours = minutes // 60
    if hours < 24:
        return _plural(hours, "hour")
    days = hours // 24
    if days < 30:
        return _plural(days, "day")
    months = days // 30
    if months < 12:
        return _plural(months, "month")
    return _plural(months // 12, "year")


def is_today(value: Any, now: datetime | None = None) -> bool:
    parsed = parse_timestamp(value)
    if parsed is None:
        return False
    return parsed.date() == (now or _utcnow()).date()


def is_yesterday(value: Any, now: datetime | None = None) -> bool:
    parsed = parse_timestamp(value)
    if parsed is None:
        return False
    return parsed.date() == ((now or _utcnow()) - timedelta(days=1)).date()
