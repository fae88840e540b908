from __future__ import annotations

import argparse
import logging
import sys

from post_mirror.config import AppConfig, ConfigError, default_config, load_config
from post_mirror.importer import PostImporter
from post_mirror.logging_config import setup_logging
from post_mirror.models import StoredPost
from post_mirror.service import PostSyncService
from post_mirror.sources import Source, create_source
from post_mirror.store import SQLiteStore
from post_mirror.utils.datetime_utils import format_datetime
from post_mirror.view import PostListView

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="post-mirror",
        description="Mirror posts from a JSON API into a local SQLite store.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to config YAML file (default: built-in settings)",
    )
    parser.add_argument(
        "--log-level",
        help="Override config log level (e.g. INFO, DEBUG)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init-db", help="Initialize SQLite schema")
    subparsers.add_parser("sync", help="Fetch all posts once and import them")
    subparsers.add_parser("list", help="Print stored posts ordered by id")

    show = subparsers.add_parser("show", help="Print one stored post")
    show.add_argument("post_id", type=int, help="Id of the post to show")

    history = subparsers.add_parser("history", help="Print the store's change history")
    history.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of most recent entries to print (default: 20)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = load_config(args.config) if args.config else default_config()
        store = _build_store(app_config)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2

    log_level = args.log_level or app_config.log_level
    setup_logging(log_level)

    store.init_db()

    if args.command == "init-db":
        logger.info("Initialized SQLite database at %s", app_config.storage.path)
        return 0

    if args.command == "list":
        for post in store.list_posts():
            print(_render_list_row(post))
        return 0

    if args.command == "show":
        post = store.get_post(args.post_id)
        if post is None:
            print(f"No post with id {args.post_id}", file=sys.stderr)
            return 1
        print(_render_detail(post))
        return 0

    if args.command == "history":
        entries = store.history_after(None)
        recent = entries[-args.limit:] if args.limit > 0 else []
        for entry in recent:
            print(
                f"{entry.token.value}\t{format_datetime(entry.committed_at)}\t"
                f"{entry.author}\t{len(entry.post_ids)} posts"
            )
        return 0

    return _run_sync(app_config, store)


def _build_store(app_config: AppConfig) -> SQLiteStore:
    if app_config.storage.type != "sqlite":
        raise ConfigError(f"Unsupported storage type: {app_config.storage.type}")
    return SQLiteStore(app_config.storage.path)


def _build_source(app_config: AppConfig) -> Source:
    return create_source(app_config.source)


def _run_sync(app_config: AppConfig, store: SQLiteStore) -> int:
    importer = PostImporter(store, batch_size=app_config.importer.batch_size)

    with PostListView(store) as view, PostSyncService(
        source=_build_source(app_config),
        importer=importer,
    ) as service:
        result = service.update_database()
        displayed = len(view.posts())

    if not result.success:
        logger.error("Sync failed: %s", result.error)
        return 1

    logger.info(
        "Sync complete | fetched=%d batches=%d view_posts=%d",
        result.fetched,
        result.stats.batches if result.stats else 0,
        displayed,
    )
    return 0


def _render_list_row(post: StoredPost) -> str:
    return f"{post.title}\n  id: {post.id}  userId: {post.user_id}"


def _render_detail(post: StoredPost) -> str:
    return f"{post.title}\n\n{post.body}"


if __name__ == "__main__":
    raise SystemExit(main())
