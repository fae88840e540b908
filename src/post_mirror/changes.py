"""Consume the store's change history after each commit notification.

A :class:`HistoryConsumer` remembers the token of the last history entry it
has merged. When the store reports a commit, the consumer asks for every
entry after that token and hands them, oldest first, to a merge callback.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from post_mirror.store import ChangeToken, HistoryEntry, Store, StoreChange, Subscription

logger = logging.getLogger(__name__)

MergeCallback = Callable[[HistoryEntry], None]


class ChangeError(RuntimeError):
    """Base class for failures while propagating store changes."""


class NoHistoryAvailableError(ChangeError):
    """Raised when a commit was announced but no history exists after our token."""

    def __init__(self, token: ChangeToken | None, announced: ChangeToken) -> None:
        last = token.value if token is not None else "start"
        super().__init__(
            f"store announced token {announced.value} but returned no history after {last}"
        )
        self.token = token
        self.announced = announced


class HistoryConsumer:
    def __init__(
        self,
        store: Store,
        merge: MergeCallback,
        *,
        token: ChangeToken | None = None,
    ) -> None:
        self.store = store
        self._merge = merge
        self._token = token
        self._lock = threading.Lock()
        self._subscription: Subscription | None = None

    @property
    def token(self) -> ChangeToken | None:
        return self._token

    def start(self) -> HistoryConsumer:
        if self._subscription is None:
            self._subscription = self.store.subscribe(self.handle)
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def __enter__(self) -> HistoryConsumer:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def handle(self, change: StoreChange) -> int:
        """Merge all history up to and including the announced change.

        A notification at or behind the current token has already been
        merged and is ignored. Returns the number of entries merged.
        """
        with self._lock:
            if self._token is not None and change.token <= self._token:
                logger.debug(
                    "Ignoring change %d; already merged up to %d",
                    change.token.value,
                    self._token.value,
                )
                return 0

            history = self.store.history_after(self._token)
            if not history:
                raise NoHistoryAvailableError(self._token, change.token)
            return self._merge_history(history)

    def catch_up(self) -> int:
        """Merge any history after the current token without a notification."""
        with self._lock:
            return self._merge_history(self.store.history_after(self._token))

    def _merge_history(self, history: list[HistoryEntry]) -> int:
        merged = 0
        for entry in history:
            if self._token is not None and entry.token <= self._token:
                continue
            self._merge(entry)
            self._token = entry.token
            merged += 1

        if merged:
            logger.debug("Merged %d history entries; token now %d", merged, self._token.value)
        return merged
