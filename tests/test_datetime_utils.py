from __future__ import annotations

from datetime import datetime, timedelta, timezone

from post_mirror.utils.datetime_utils import format_datetime, parse_datetime_utc


def test_parse_converts_offsets_to_utc() -> None:
    parsed = parse_datetime_utc("2026-10-18T12:30:00+02:00")

    assert parsed == datetime(2026, 10, 18, 10, 30, tzinfo=timezone.utc)


def test_parse_treats_naive_timestamps_as_utc() -> None:
    assert parse_datetime_utc("2026-10-18T12:30:00") == datetime(
        2026, 10, 18, 12, 30, tzinfo=timezone.utc
    )


def test_parse_returns_none_for_blank_or_invalid_values() -> None:
    assert parse_datetime_utc(None) is None
    assert parse_datetime_utc("  ") is None
    assert parse_datetime_utc("not a date") is None


def test_format_uses_utc() -> None:
    value = datetime(2026, 10, 18, 9, 5, 7, tzinfo=timezone(timedelta(hours=-3)))

    assert format_datetime(value) == "2026-10-18 12:05:07 UTC"
