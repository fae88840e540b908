from __future__ import annotations

from abc import ABC, abstractmethod

from post_mirror.models import PostRecord


class FetchError(RuntimeError):
    """Base class for failures while downloading the post collection."""


class TransportError(FetchError):
    """Raised when the request never produced an HTTP response."""

    def __init__(self, details: str) -> None:
        super().__init__(f"transport error: {details}")
        self.details = details


class UnexpectedStatusError(FetchError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"unexpected HTTP status {status_code}")
        self.status_code = status_code


class MalformedPayloadError(FetchError):
    """Raised when the response body is not a JSON array of posts."""


class Source(ABC):
    def __init__(self, source_id: str) -> None:
        self.source_id = source_id

    @abstractmethod
    def fetch(self) -> list[PostRecord]:
        """Fetch and decode the full post collection."""
