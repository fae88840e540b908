from __future__ import annotations

import json
from pathlib import Path

import pytest

from post_mirror.cli import main


class _DummyResponse:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.text = content.decode("utf-8")
        self.status_code = status_code


def _config(tmp_path: Path) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(
        "source:\n"
        "  url: https://example.test/posts\n"
        "importer:\n"
        "  batch_size: 1\n"
        "storage:\n"
        "  path: state/posts.sqlite\n",
        encoding="utf-8",
    )
    return str(path)


def _serve(monkeypatch: pytest.MonkeyPatch, body: bytes, status_code: int = 200) -> None:
    monkeypatch.setattr(
        "requests.get",
        lambda *args, **kwargs: _DummyResponse(body, status_code=status_code),
    )


def test_sync_then_list_and_show(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _serve(
        monkeypatch,
        json.dumps(
            [
                {"userId": 2, "id": 2, "title": "second", "body": "second body"},
                {"userId": 1, "id": 1, "title": "first", "body": "first body"},
            ]
        ).encode("utf-8"),
    )
    config = _config(tmp_path)

    assert main(["-c", config, "sync"]) == 0
    assert (tmp_path / "state" / "posts.sqlite").exists()

    capsys.readouterr()
    assert main(["-c", config, "list"]) == 0
    assert capsys.readouterr().out == (
        "first\n  id: 1  userId: 1\n"
        "second\n  id: 2  userId: 2\n"
    )

    assert main(["-c", config, "show", "2"]) == 0
    assert capsys.readouterr().out == "second\n\nsecond body\n"

    assert main(["-c", config, "history", "--limit", "1"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("2\t")


def test_sync_failure_returns_nonzero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _serve(monkeypatch, b"gone", status_code=404)
    config = _config(tmp_path)

    assert main(["-c", config, "sync"]) == 1


def test_show_unknown_post_returns_nonzero(tmp_path: Path, capsys) -> None:
    assert main(["-c", _config(tmp_path), "show", "42"]) == 1
    assert "No post with id 42" in capsys.readouterr().err


def test_missing_config_is_a_config_error(tmp_path: Path, capsys) -> None:
    assert main(["-c", str(tmp_path / "missing.yaml"), "list"]) == 2
    assert "Config error" in capsys.readouterr().err
