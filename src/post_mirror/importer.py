from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from post_mirror.config import DEFAULT_BATCH_SIZE
from post_mirror.models import PostRecord, post_to_row
from post_mirror.store import ChangeToken, Store, StoreError

logger = logging.getLogger(__name__)


class PostImportError(RuntimeError):
    """Base class for failures while writing fetched posts to the store."""


class BatchInsertError(PostImportError):
    def __init__(self, batch_index: int, message: str) -> None:
        super().__init__(f"batch {batch_index} insert failed: {message}")
        self.batch_index = batch_index


@dataclass(slots=True)
class ImportStats:
    batches: int = 0
    posts: int = 0
    tokens: list[ChangeToken] = field(default_factory=list)


def partition(count: int, batch_size: int) -> Iterator[range]:
    """Yield consecutive index ranges covering [0, count) exactly once.

    The last range is shorter when count is not a multiple of batch_size.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    for start in range(0, count, batch_size):
        yield range(start, min(start + batch_size, count))


class PostImporter:
    """Write posts to a store in fixed-size batches.

    Every batch is committed on its own writer connection, so a failure part
    way through leaves the earlier batches in place and skips the rest.
    """

    def __init__(
        self,
        store: Store,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        author: str = "importer",
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.store = store
        self.batch_size = batch_size
        self.author = author

    def import_posts(self, records: Sequence[PostRecord]) -> ImportStats:
        stats = ImportStats()

        for batch_index, indexes in enumerate(partition(len(records), self.batch_size)):
            rows = [post_to_row(records[index]) for index in indexes]
            try:
                token = self.store.upsert_posts(rows, author=self.author)
            except StoreError as exc:
                logger.error(
                    "Import halted at batch %d (%d posts committed before it): %s",
                    batch_index,
                    stats.posts,
                    exc,
                )
                raise BatchInsertError(batch_index, str(exc)) from exc

            stats.batches += 1
            stats.posts += len(rows)
            stats.tokens.append(token)
            logger.debug(
                "Committed batch %d (posts %d-%d) as token %d",
                batch_index,
                indexes.start,
                indexes.stop - 1,
                token.value,
            )

        logger.info("Imported %d posts in %d batches", stats.posts, stats.batches)
        return stats
