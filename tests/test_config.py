from __future__ import annotations

from pathlib import Path

import pytest

from post_mirror.config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_POSTS_URL,
    ConfigError,
    default_config,
    load_config,
)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_reads_all_sections(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
log_level: debug
source:
  id: placeholder
  type: json_posts
  url: https://example.test/posts
  timeout_seconds: "15"
importer:
  batch_size: 25
storage:
  path: db/posts.sqlite
""",
    )

    config = load_config(path)

    assert config.log_level == "DEBUG"
    assert config.source.id == "placeholder"
    assert config.source.url == "https://example.test/posts"
    assert config.source.options == {"timeout_seconds": 15}
    assert config.importer.batch_size == 25
    assert config.storage.path == str((tmp_path / "db" / "posts.sqlite").resolve())


def test_empty_config_uses_defaults(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, ""))

    assert config.source.url == DEFAULT_POSTS_URL
    assert config.source.type == "json_posts"
    assert config.importer.batch_size == DEFAULT_BATCH_SIZE
    assert config.storage.path == str((tmp_path / "data" / "posts.sqlite").resolve())


def test_default_config_matches_builtin_endpoint() -> None:
    config = default_config()

    assert config.source.url == DEFAULT_POSTS_URL
    assert config.importer.batch_size == 10


@pytest.mark.parametrize(
    "text",
    [
        "importer:\n  batch_size: 0\n",
        "importer:\n  batch_size: true\n",
        "importer:\n  batch_size: ten\n",
        "source: [a, b]\n",
        "source:\n  url: ''\n",
        "source:\n  timeout_seconds: 0\n",
        "- just\n- a list\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, text: str) -> None:
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, text))


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")
