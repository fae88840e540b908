"""Store implementations."""

from .base import (
    ChangeToken,
    HistoryEntry,
    Store,
    StoreChange,
    StoreError,
    Subscription,
)
from .sqlite_store import SQLiteStore

__all__ = [
    "ChangeToken",
    "HistoryEntry",
    "SQLiteStore",
    "Store",
    "StoreChange",
    "StoreError",
    "Subscription",
]
