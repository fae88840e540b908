"""Source implementations and registry."""

from .base import (
    FetchError,
    MalformedPayloadError,
    Source,
    TransportError,
    UnexpectedStatusError,
)
from .json_source import JsonPostsSource
from .registry import (
    SourceRegistrationError,
    create_source,
    register_source,
    registered_source_types,
)

__all__ = [
    "FetchError",
    "JsonPostsSource",
    "MalformedPayloadError",
    "Source",
    "SourceRegistrationError",
    "TransportError",
    "UnexpectedStatusError",
    "create_source",
    "register_source",
    "registered_source_types",
]
