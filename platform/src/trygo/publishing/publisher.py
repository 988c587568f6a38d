"""Publish adapter: content item in, structured result out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from trygo.config import Settings
from trygo.errors import PipelineError
from trygo.publishing.mapper import map_content_item_to_post
from trygo.publishing.wordpress import WordPressClient, WordPressConnection
from trygo.storage.models import ContentItem

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    """Outcome of one publish attempt. ``error`` is shown to users verbatim."""

    success: bool
    word_press_post_id: int | None = None
    word_press_post_url: str | None = None
    error: str | None = None


class Publisher(Protocol):
    def publish(self, item: ContentItem, *, publish_date: date | None = None) -> PublishResult: ...


class WordPressPublisher:
    """Publishes content items to one WordPress site.

    Never raises for adapter failures; they come back as ``success=False``.
    """

    def __init__(
        self,
        client: WordPressClient,
        *,
        post_type: str = "post",
        default_category_id: int | None = None,
        default_tag_ids: list[int] | None = None,
    ) -> None:
        self._client = client
        self._post_type = post_type
        self._default_category_id = default_category_id
        self._default_tag_ids = default_tag_ids or []

    @classmethod
    def from_settings(cls, settings: Settings) -> WordPressPublisher:
        client = WordPressClient(
            WordPressConnection.from_settings(settings), timeout=settings.http_timeout
        )
        return cls(
            client,
            post_type=settings.wordpress_post_type,
            default_category_id=settings.wordpress_default_category_id,
            default_tag_ids=settings.wordpress_default_tag_ids,
        )

    def close(self) -> None:
        self._client.close()

    def publish(self, item: ContentItem, *, publish_date: date | None = None) -> PublishResult:
        if not item.content:
            return PublishResult(success=False, error="Content item has no content to publish")

        featured_media = None
        if item.image_url:
            featured_media = self._client.upload_media(item.image_url)
            if featured_media is None:
                logger.warning("Publishing %s without a featured image", item.id)

        post = map_content_item_to_post(
            item,
            publish_date=publish_date,
            post_type=self._post_type,
            default_category_id=self._default_category_id,
            default_tag_ids=self._default_tag_ids,
            featured_media=featured_media,
        )
        try:
            published = self._client.publish_post(post)
        except PipelineError as exc:
            logger.error("WordPress publish failed for %s: %s", item.id, exc)
            return PublishResult(success=False, error=str(exc))

        return PublishResult(
            success=True,
            word_press_post_id=published.post_id,
            word_press_post_url=published.url,
        )
