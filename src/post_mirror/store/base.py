from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable

from post_mirror.models import StoredPost

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the persistent store rejects a read or write."""


@dataclass(frozen=True, slots=True, order=True)
class ChangeToken:
    """Position in the store's change history. Larger values are newer."""

    value: int


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    token: ChangeToken
    author: str
    committed_at: datetime
    post_ids: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class StoreChange:
    token: ChangeToken
    post_ids: tuple[int, ...]


ChangeCallback = Callable[[StoreChange], None]


class Subscription:
    """Handle for a change callback registered with a store.

    Closing the subscription (directly or by leaving a ``with`` block)
    detaches the callback; closing twice is harmless.
    """

    def __init__(self, store: Store, callback: ChangeCallback) -> None:
        self._store = store
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._store._unsubscribe(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Store(ABC):
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._subscriptions_lock = threading.Lock()

    @abstractmethod
    def init_db(self) -> None:
        """Create any required schema."""

    @abstractmethod
    def upsert_posts(self, rows: list[dict[str, Any]], *, author: str) -> ChangeToken:
        """Atomically insert or overwrite rows by id and record one history entry."""

    @abstractmethod
    def get_post(self, post_id: int) -> StoredPost | None:
        """Return the stored post, or None if absent."""

    @abstractmethod
    def get_posts(self, post_ids: Iterable[int]) -> list[StoredPost]:
        """Return the stored posts among post_ids, ordered by id."""

    @abstractmethod
    def list_posts(self) -> list[StoredPost]:
        """Return every stored post ordered by id ascending."""

    @abstractmethod
    def history_after(self, token: ChangeToken | None) -> list[HistoryEntry]:
        """Return history entries newer than token, oldest first."""

    @abstractmethod
    def latest_token(self) -> ChangeToken | None:
        """Return the newest history token, or None if history is empty."""

    def subscribe(self, callback: ChangeCallback) -> Subscription:
        subscription = Subscription(self, callback)
        with self._subscriptions_lock:
            self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._subscriptions_lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _notify(self, change: StoreChange) -> None:
        with self._subscriptions_lock:
            subscriptions = list(self._subscriptions)

        for subscription in subscriptions:
            try:
                subscription.callback(change)
            except Exception as exc:  # noqa: BLE001
                logger.exception(
                    "change subscriber failed for token %d: %s",
                    change.token.value,
                    exc,
                )
