from __future__ import annotations

from datetime import datetime, timezone

from dateutil import parser


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime_utc(value: str | None) -> datetime | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return to_utc(parser.isoparse(value))
    except (ValueError, OverflowError):
        return None


def format_datetime(value: datetime) -> str:
    return to_utc(value).strftime("%Y-%m-%d %H:%M:%S UTC")
