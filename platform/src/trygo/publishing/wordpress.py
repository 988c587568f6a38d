"""WordPress REST API client (``/wp-json/wp/v2``) using application passwords."""

from __future__ import annotations

import base64
import logging
import re
from dataclasses import dataclass, field

import httpx

from trygo.config import Settings
from trygo.errors import UpstreamError

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)


@dataclass
class WordPressConnection:
    """Target site and Basic-Auth credentials."""

    base_url: str
    username: str
    app_password: str

    @classmethod
    def from_settings(cls, settings: Settings) -> WordPressConnection:
        return cls(
            base_url=settings.wordpress_base_url.rstrip("/"),
            username=settings.wordpress_username,
            app_password=settings.wordpress_app_password,
        )


@dataclass
class WordPressPost:
    """Post payload accepted by the posts endpoint."""

    title: str
    content: str
    status: str = "publish"
    slug: str | None = None
    excerpt: str | None = None
    date: str | None = None
    date_gmt: str | None = None
    featured_media: int | None = None
    categories: list[int] = field(default_factory=list)
    tags: list[int] = field(default_factory=list)
    format: str = "standard"
    type: str = "post"

    def to_payload(self) -> dict:
        payload: dict = {
            "title": self.title,
            "content": self.content,
            "status": self.status,
            "format": self.format,
            "categories": self.categories,
            "tags": self.tags,
            "comment_status": "open",
            "ping_status": "open",
            "sticky": False,
        }
        for key in ("slug", "excerpt", "date", "date_gmt", "featured_media"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


@dataclass
class PublishedPost:
    """Confirmed post returned by WordPress."""

    post_id: int
    url: str


class WordPressClient:
    """Wrapper around the WordPress REST API."""

    def __init__(self, connection: WordPressConnection, *, timeout: float = 30.0) -> None:
        self._connection = connection
        self._client = httpx.Client(
            base_url=f"{connection.base_url}/wp-json/wp/v2",
            auth=(connection.username, connection.app_password),
            headers={"Accept": "application/json"},
            timeout=timeout,
        )

    def test_connection(self) -> tuple[bool, str | None]:
        """Check credentials against ``users/me``; returns ``(ok, error)``."""
        try:
            resp = self._client.get("/users/me")
        except httpx.HTTPError as exc:
            return False, f"Failed to connect to WordPress: {exc}"
        if resp.is_success:
            return True, None
        return False, f"WordPress API returned {resp.status_code}: {resp.text[:200]}"

    def publish_post(self, post: WordPressPost) -> PublishedPost:
        """Create a post (or custom post type entry) and return its id and link."""
        endpoint = "/posts" if post.type == "post" else f"/{post.type}"
        try:
            resp = self._client.post(endpoint, json=post.to_payload())
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                "wordpress",
                f"WordPress API error: {exc.response.status_code} {exc.response.text[:500]}",
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError("wordpress", f"WordPress request failed: {exc}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError("wordpress", "WordPress returned a non-JSON response") from exc

        if not isinstance(data, dict) or not data.get("id") or not data.get("link"):
            raise UpstreamError(
                "wordpress",
                "WordPress did not confirm publication. Missing post ID or link in response.",
            )
        logger.info("WordPress confirmed post %s at %s", data["id"], data["link"])
        return PublishedPost(post_id=int(data["id"]), url=data["link"])

    def _load_image(self, image_url: str) -> tuple[bytes, str, str] | None:
        match = _DATA_URI_RE.match(image_url)
        if match:
            content_type = match.group(1)
            try:
                content = base64.b64decode(match.group(2))
            except ValueError:
                logger.warning("Image data URI is not valid base64")
                return None
            return content, content_type, f"image.{content_type.split('/')[-1] or 'jpg'}"

        resp = httpx.get(image_url, timeout=self._client.timeout, follow_redirects=True)
        if not resp.is_success:
            logger.warning("Could not download image %s: %s", image_url, resp.status_code)
            return None
        content_type = resp.headers.get("content-type", "image/jpeg")
        filename = image_url.rsplit("/", 1)[-1].split("?")[0] or "image.jpg"
        return resp.content, content_type, filename

    def upload_media(self, image_url: str) -> int | None:
        """Upload an image from a URL or ``data:`` URI; returns the media id.

        Failures are logged and return None so the post can go out without
        a featured image.
        """
        try:
            loaded = self._load_image(image_url)
            if loaded is None:
                return None
            content, content_type, filename = loaded
            resp = self._client.post(
                "/media", files={"file": (filename, content, content_type)}
            )
        except httpx.HTTPError as exc:
            logger.warning("Media upload failed: %s", exc)
            return None

        if not resp.is_success:
            logger.warning("Media upload rejected: %s %s", resp.status_code, resp.text[:200])
            return None
        try:
            media_id = resp.json().get("id")
        except ValueError:
            media_id = None
        if not media_id:
            logger.warning("WordPress returned no media id")
            return None
        return int(media_id)

    def close(self) -> None:
        self._client.close()
