from __future__ import annotations

import logging
import threading
from typing import Callable

from post_mirror.changes import HistoryConsumer
from post_mirror.models import StoredPost
from post_mirror.store import ChangeToken, HistoryEntry, Store

logger = logging.getLogger(__name__)

ViewListener = Callable[[list[StoredPost]], None]


class PostListView:
    """Read-side snapshot of the stored posts, ordered by id.

    The snapshot is loaded once on :meth:`open` and afterwards changes only
    through merged change history. Each merge re-reads the affected rows and
    replaces them wholesale, so the most recently committed write wins.
    """

    def __init__(self, store: Store) -> None:
        self.store = store
        self._posts: dict[int, StoredPost] = {}
        self._lock = threading.Lock()
        self._listeners: list[ViewListener] = []
        self._consumer: HistoryConsumer | None = None

    def open(self) -> PostListView:
        if self._consumer is not None:
            return self

        token = self.store.latest_token()
        snapshot = self.store.list_posts()
        with self._lock:
            self._posts = {post.id: post for post in snapshot}

        self._consumer = HistoryConsumer(self.store, self._merge_entry, token=token).start()
        # Commits that landed between the snapshot and the subscription.
        self._consumer.catch_up()
        logger.debug("Opened post view with %d posts", len(snapshot))
        return self

    def close(self) -> None:
        if self._consumer is not None:
            self._consumer.close()
            self._consumer = None

    def __enter__(self) -> PostListView:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def token(self) -> ChangeToken | None:
        return self._consumer.token if self._consumer is not None else None

    def posts(self) -> list[StoredPost]:
        with self._lock:
            return [self._posts[post_id] for post_id in sorted(self._posts)]

    def get(self, post_id: int) -> StoredPost | None:
        with self._lock:
            return self._posts.get(post_id)

    def add_listener(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ViewListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _merge_entry(self, entry: HistoryEntry) -> None:
        fresh = {post.id: post for post in self.store.get_posts(entry.post_ids)}
        with self._lock:
            for post_id in entry.post_ids:
                post = fresh.get(post_id)
                if post is None:
                    self._posts.pop(post_id, None)
                else:
                    self._posts[post_id] = post

        posts = self.posts()
        for listener in list(self._listeners):
            try:
                listener(posts)
            except Exception as exc:  # noqa: BLE001
                logger.exception(
                    "view listener failed after merging token %d: %s",
                    entry.token.value,
                    exc,
                )
