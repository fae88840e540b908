from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_WIRE_FIELDS = ("userId", "id", "title", "body")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass(frozen=True, slots=True)
class PostRecord:
    user_id: int
    id: int
    title: str
    body: str


@dataclass(frozen=True, slots=True)
class StoredPost:
    id: int
    user_id: int
    title: str
    body: str


def post_from_payload(item: Any) -> PostRecord:
    """Decode one wire object, rejecting missing or mistyped fields."""
    if not isinstance(item, dict):
        raise ValueError(f"post entry must be an object, got {type(item).__name__}")

    missing = [name for name in _WIRE_FIELDS if name not in item]
    if missing:
        raise ValueError(f"post entry missing fields: {', '.join(missing)}")

    return PostRecord(
        user_id=_require_int(item["userId"], field_name="userId"),
        id=_require_int(item["id"], field_name="id"),
        title=_require_str(item["title"], field_name="title"),
        body=_require_str(item["body"], field_name="body"),
    )


def post_to_row(record: PostRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "title": record.title,
        "body": record.body,
    }


def _require_int(value: Any, *, field_name: str) -> int:
    # bool is an int subclass; JSON true/false is not a valid identifier.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"{field_name} is outside the 64-bit integer range")
    return value


def _require_str(value: Any, *, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value
