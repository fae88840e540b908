from __future__ import annotations

from typing import Callable

from post_mirror.config import SourceSettings

from .base import Source

SourceFactory = Callable[[SourceSettings], Source]

_REGISTRY: dict[str, SourceFactory] = {}


class SourceRegistrationError(ValueError):
    """Raised for unknown or conflicting source types."""


def register_source(source_type: str) -> Callable[[SourceFactory], SourceFactory]:
    def decorator(factory: SourceFactory) -> SourceFactory:
        existing = _REGISTRY.get(source_type)
        if existing is not None and existing is not factory:
            raise SourceRegistrationError(
                f"Source type '{source_type}' is already registered by {existing.__qualname__}"
            )
        _REGISTRY[source_type] = factory
        return factory

    return decorator


def create_source(settings: SourceSettings) -> Source:
    factory = _REGISTRY.get(settings.type)
    if factory is None:
        available = ", ".join(registered_source_types()) or "none"
        raise SourceRegistrationError(
            f"Unknown source type '{settings.type}' for source '{settings.id}'. "
            f"Registered source types: {available}"
        )
    return factory(settings)


def registered_source_types() -> list[str]:
    return sorted(_REGISTRY)
