from __future__ import annotations

import json
import logging
from typing import Any

import requests

from post_mirror.config import SourceSettings
from post_mirror.models import PostRecord, post_from_payload

from .base import (
    MalformedPayloadError,
    Source,
    TransportError,
    UnexpectedStatusError,
)
from .registry import register_source

logger = logging.getLogger(__name__)


class JsonPostsSource(Source):
    """Download the whole post collection from a JSON endpoint in one request."""

    def __init__(self, settings: SourceSettings) -> None:
        super().__init__(source_id=settings.id)
        self.url = settings.url
        timeout_raw = settings.options.get("timeout_seconds")
        # None leaves the requests default in place.
        self.timeout_seconds = int(timeout_raw) if timeout_raw is not None else None

    def fetch(self) -> list[PostRecord]:
        headers = {"Accept": "application/json", "User-Agent": "post-mirror/0.1"}
        try:
            response = requests.get(self.url, timeout=self.timeout_seconds, headers=headers)
        except requests.RequestException as exc:
            raise TransportError(str(exc)) from exc

        if not 200 <= response.status_code < 300:
            raise UnexpectedStatusError(response.status_code)

        try:
            payload = json.loads(response.content)
        except ValueError as exc:
            raise MalformedPayloadError(f"response from {self.url} is not valid JSON") from exc

        posts = _decode_posts(payload)
        logger.debug("Decoded %d posts from %s", len(posts), self.url)
        return posts


def _decode_posts(payload: Any) -> list[PostRecord]:
    if not isinstance(payload, list):
        raise MalformedPayloadError(
            f"expected a JSON array of posts, got {type(payload).__name__}"
        )

    posts: list[PostRecord] = []
    for index, item in enumerate(payload):
        try:
            posts.append(post_from_payload(item))
        except ValueError as exc:
            raise MalformedPayloadError(f"post #{index}: {exc}") from exc
    return posts


@register_source("json_posts")
def _build_json_posts_source(settings: SourceSettings) -> Source:
    return JsonPostsSource(settings)
