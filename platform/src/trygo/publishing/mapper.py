"""Map content items onto WordPress post payloads."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone

from trygo.publishing.wordpress import WordPressPost
from trygo.storage.models import ContentItem

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    return _SLUG_RE.sub("-", title.lower()).strip("-")


def map_content_item_to_post(
    item: ContentItem,
    *,
    publish_date: date | None = None,
    post_type: str = "post",
    default_category_id: int | None = None,
    default_tag_ids: list[int] | None = None,
    featured_media: int | None = None,
    today: date | None = None,
) -> WordPressPost:
    """Build the post payload; a future publish date schedules the post."""
    today = today or datetime.now(timezone.utc).date()
    post = WordPressPost(
        title=item.title,
        content=item.content or "",
        status="future" if publish_date and publish_date > today else "publish",
        slug=slugify(item.title) or None,
        excerpt=item.outline or None,
        featured_media=featured_media,
        categories=[default_category_id] if default_category_id else [],
        tags=list(default_tag_ids or []),
        type=post_type or "post",
    )
    if publish_date:
        stamp = datetime.combine(publish_date, time.min).isoformat()
        post.date = stamp
        post.date_gmt = stamp
    return post
