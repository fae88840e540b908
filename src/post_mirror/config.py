from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_POSTS_URL = "https://jsonplaceholder.typicode.com/posts"
DEFAULT_BATCH_SIZE = 10
DEFAULT_STORAGE_PATH = "data/posts.sqlite"


class ConfigError(ValueError):
    """Raised when configuration is invalid."""


@dataclass(slots=True)
class SourceSettings:
    id: str = "posts"
    type: str = "json_posts"
    url: str = DEFAULT_POSTS_URL
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ImportSettings:
    batch_size: int = DEFAULT_BATCH_SIZE


@dataclass(slots=True)
class StorageSettings:
    type: str = "sqlite"
    path: str = DEFAULT_STORAGE_PATH


@dataclass(slots=True)
class AppConfig:
    source: SourceSettings = field(default_factory=SourceSettings)
    importer: ImportSettings = field(default_factory=ImportSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    log_level: str = "INFO"


def _as_mapping(value: Any, *, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{field_name} must be a mapping")
    return value


def _as_int(value: Any, *, field_name: str, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be an integer")

    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be an integer") from exc

    if minimum is not None and parsed < minimum:
        raise ConfigError(f"{field_name} must be >= {minimum}")
    return parsed


def _resolve_relative_path(config_path: Path, raw_path: str) -> str:
    candidate = Path(raw_path).expanduser()
    if candidate.is_absolute():
        return str(candidate)
    return str((config_path.parent / candidate).resolve())


def default_config() -> AppConfig:
    return AppConfig()


def load_config(path: str | Path) -> AppConfig:
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            parsed = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config file is not valid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ConfigError("Config root must be a mapping")

    raw_source = _as_mapping(parsed.get("source"), field_name="source")
    source_id = str(raw_source.get("id", "posts")).strip()
    source_type = str(raw_source.get("type", "json_posts")).strip()
    source_url = str(raw_source.get("url", DEFAULT_POSTS_URL)).strip()
    if not source_id or not source_type or not source_url:
        raise ConfigError("source must not have an empty id, type or url")

    options = {
        key: value
        for key, value in raw_source.items()
        if key not in {"id", "type", "url"}
    }
    if options.get("timeout_seconds") is not None:
        options["timeout_seconds"] = _as_int(
            options["timeout_seconds"],
            field_name="source.timeout_seconds",
            minimum=1,
        )

    source_settings = SourceSettings(
        id=source_id,
        type=source_type,
        url=source_url,
        options=options,
    )

    raw_importer = _as_mapping(parsed.get("importer"), field_name="importer")
    import_settings = ImportSettings(
        batch_size=_as_int(
            raw_importer.get("batch_size", DEFAULT_BATCH_SIZE),
            field_name="importer.batch_size",
            minimum=1,
        ),
    )

    raw_storage = _as_mapping(parsed.get("storage"), field_name="storage")
    storage_path = (
        str(raw_storage.get("path", DEFAULT_STORAGE_PATH)).strip() or DEFAULT_STORAGE_PATH
    )
    storage_settings = StorageSettings(
        type=str(raw_storage.get("type", "sqlite")).strip() or "sqlite",
        path=_resolve_relative_path(config_path, storage_path),
    )

    return AppConfig(
        source=source_settings,
        importer=import_settings,
        storage=storage_settings,
        log_level=str(parsed.get("log_level", "INFO")).upper(),
    )
