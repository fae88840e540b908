from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

from post_mirror.models import StoredPost
from post_mirror.utils.datetime_utils import parse_datetime_utc

from .base import ChangeToken, HistoryEntry, Store, StoreChange, StoreError

# Stay well under SQLITE_MAX_VARIABLE_NUMBER on older builds.
_MAX_IN_PARAMS = 500


class SQLiteStore(Store):
    def __init__(self, db_path: str) -> None:
        super().__init__()
        self.db_path = Path(db_path)

    def init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as connection:
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS posts (
                    id INTEGER PRIMARY KEY,
                    user_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    body TEXT NOT NULL
                )
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS post_history (
                    token INTEGER PRIMARY KEY AUTOINCREMENT,
                    author TEXT NOT NULL,
                    committed_at TEXT NOT NULL,
                    post_ids TEXT NOT NULL
                )
                """
            )
            connection.commit()

    def upsert_posts(self, rows: list[dict[str, Any]], *, author: str) -> ChangeToken:
        post_ids = tuple(dict.fromkeys(row["id"] for row in rows))
        committed_at = datetime.now(timezone.utc).isoformat()

        try:
            with self._connect() as connection:
                # One transaction: every row and its history entry, or nothing.
                with connection:
                    connection.executemany(
                        """
                        INSERT INTO posts (id, user_id, title, body)
                        VALUES (:id, :user_id, :title, :body)
                        ON CONFLICT(id) DO UPDATE SET
                            user_id = excluded.user_id,
                            title = excluded.title,
                            body = excluded.body
                        """,
                        rows,
                    )
                    cursor = connection.execute(
                        """
                        INSERT INTO post_history (author, committed_at, post_ids)
                        VALUES (?, ?, ?)
                        """,
                        (author, committed_at, json.dumps(list(post_ids))),
                    )
                    token = ChangeToken(cursor.lastrowid)
        except (sqlite3.Error, OverflowError) as exc:
            # OverflowError: an integer too wide for SQLite INTEGER.
            raise StoreError(f"upsert of {len(rows)} posts failed: {exc}") from exc

        self._notify(StoreChange(token=token, post_ids=post_ids))
        return token

    def get_post(self, post_id: int) -> StoredPost | None:
        with self._connect() as connection:
            row = self._read(
                connection,
                "SELECT id, user_id, title, body FROM posts WHERE id = ?",
                (post_id,),
            ).fetchone()

        if row is None:
            return None
        return _row_to_post(row)

    def get_posts(self, post_ids: Iterable[int]) -> list[StoredPost]:
        unique_ids = list(dict.fromkeys(post_ids))
        posts: list[StoredPost] = []

        with self._connect() as connection:
            for start in range(0, len(unique_ids), _MAX_IN_PARAMS):
                chunk = unique_ids[start:start + _MAX_IN_PARAMS]
                placeholders = ", ".join("?" for _ in chunk)
                rows = self._read(
                    connection,
                    f"SELECT id, user_id, title, body FROM posts WHERE id IN ({placeholders})",
                    tuple(chunk),
                ).fetchall()
                posts.extend(_row_to_post(row) for row in rows)

        posts.sort(key=lambda post: post.id)
        return posts

    def list_posts(self) -> list[StoredPost]:
        with self._connect() as connection:
            rows = self._read(
                connection,
                "SELECT id, user_id, title, body FROM posts ORDER BY id ASC",
            ).fetchall()
        return [_row_to_post(row) for row in rows]

    def history_after(self, token: ChangeToken | None) -> list[HistoryEntry]:
        after = token.value if token is not None else 0
        with self._connect() as connection:
            rows = self._read(
                connection,
                """
                SELECT token, author, committed_at, post_ids
                FROM post_history
                WHERE token > ?
                ORDER BY token ASC
                """,
                (after,),
            ).fetchall()

        return [
            HistoryEntry(
                token=ChangeToken(row["token"]),
                author=row["author"],
                committed_at=parse_datetime_utc(row["committed_at"])
                or datetime.fromtimestamp(0, tz=timezone.utc),
                post_ids=tuple(json.loads(row["post_ids"])),
            )
            for row in rows
        ]

    def latest_token(self) -> ChangeToken | None:
        with self._connect() as connection:
            row = self._read(connection, "SELECT MAX(token) AS token FROM post_history").fetchone()

        if row is None or row["token"] is None:
            return None
        return ChangeToken(row["token"])

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        connection = sqlite3.connect(self.db_path)
        connection.row_factory = sqlite3.Row
        try:
            yield connection
        finally:
            connection.close()

    @staticmethod
    def _read(
        connection: sqlite3.Connection,
        query: str,
        params: tuple[Any, ...] = (),
    ) -> sqlite3.Cursor:
        try:
            return connection.execute(query, params)
        except sqlite3.Error as exc:
            raise StoreError(f"read failed: {exc}") from exc


def _row_to_post(row: sqlite3.Row) -> StoredPost:
    return StoredPost(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        body=row["body"],
    )
