from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable

from post_mirror.importer import ImportStats, PostImporter, PostImportError
from post_mirror.sources import FetchError, Source

logger = logging.getLogger(__name__)

Completion = Callable[[bool, BaseException | None], None]


@dataclass(slots=True)
class UpdateResult:
    success: bool
    error: Exception | None = None
    fetched: int = 0
    stats: ImportStats | None = None


class PostSyncService:
    """Fetch the post collection and import it into the store.

    Only one update runs at a time; overlapping callers wait for the one in
    flight and then run their own.
    """

    def __init__(self, *, source: Source, importer: PostImporter) -> None:
        self.source = source
        self.importer = importer
        self._in_flight = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None

    def update_database(self) -> UpdateResult:
        with self._in_flight:
            try:
                records = self.source.fetch()
            except FetchError as exc:
                logger.error("source %s fetch failed: %s", self.source.source_id, exc)
                return UpdateResult(success=False, error=exc)

            logger.info("Source %s returned %d posts", self.source.source_id, len(records))

            try:
                stats = self.importer.import_posts(records)
            except PostImportError as exc:
                logger.error("import from %s failed: %s", self.source.source_id, exc)
                return UpdateResult(success=False, error=exc, fetched=len(records))

            return UpdateResult(success=True, fetched=len(records), stats=stats)

    def refresh(self, completion: Completion | None = None) -> Future[UpdateResult]:
        """Run :meth:`update_database` on the worker thread."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="post-sync")

        future = self._executor.submit(self.update_database)
        if completion is not None:
            future.add_done_callback(lambda done: _report(done, completion))
        return future

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> PostSyncService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _report(future: Future[UpdateResult], completion: Completion) -> None:
    error = future.exception()
    if error is not None:
        completion(False, error)
        return

    result = future.result()
    completion(result.success, result.error)
