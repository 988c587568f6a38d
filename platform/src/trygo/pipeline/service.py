"""Content pipeline orchestration: idea to draft to published post."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from trygo.config import Settings
from trygo.content.base import GenerationRequest
from trygo.content.context import ContextProvider, FileContextProvider
from trygo.content.drafts import DraftGenerator
from trygo.errors import (
    NotFoundError,
    StatusSyncError,
    UpstreamError,
    ValidationError,
)
from trygo.images.imagen import ImageGenerator, ImagenClient
from trygo.llm.client import ClaudeClient
from trygo.pipeline.guard import assert_publish_date_available
from trygo.pipeline.sync import PipelineEvent, StatusSynchronizer
from trygo.publishing.publisher import Publisher, PublishResult, WordPressPublisher
from trygo.storage.content_items import ContentItemStore, find_live_item_for_idea
from trygo.storage.database import get_session
from trygo.storage.ideas import IdeaStore, check_scope
from trygo.storage.models import (
    BacklogIdea,
    ContentFormat,
    ContentItem,
    ContentStatus,
    IdeaCategory,
    IdeaStatus,
)

logger = logging.getLogger(__name__)

_CATEGORY_FORMATS = {
    IdeaCategory.FEATURE: ContentFormat.COMMERCIAL,
    IdeaCategory.BENEFIT: ContentFormat.COMMERCIAL,
    IdeaCategory.FAQ: ContentFormat.FAQ,
}

# Content statuses each manual event may start from
_ALLOWED_FROM = {
    PipelineEvent.MOVED_TO_REVIEW: {ContentStatus.DRAFT, ContentStatus.READY},
    PipelineEvent.MARKED_READY: {ContentStatus.DRAFT, ContentStatus.REVIEW},
    PipelineEvent.UNPUBLISHED: {ContentStatus.PUBLISHED},
}


def format_for_category(category: IdeaCategory) -> ContentFormat:
    return _CATEGORY_FORMATS.get(category, ContentFormat.BLOG)


class ContentPipeline:
    """Runs the lifecycle operations against the stores and adapters.

    Adapters are injected; ``from_settings`` wires the production ones.
    """

    def __init__(
        self,
        db_path: Path,
        generator: DraftGenerator,
        context_provider: ContextProvider,
        *,
        image_generator: ImageGenerator | None = None,
        publisher: Publisher | None = None,
        synchronizer: StatusSynchronizer | None = None,
    ) -> None:
        self._db_path = db_path
        self.ideas = IdeaStore(db_path)
        self.items = ContentItemStore(db_path)
        self._generator = generator
        self._context_provider = context_provider
        self._image_generator = image_generator
        self._publisher = publisher
        self._sync = synchronizer or StatusSynchronizer()

    @classmethod
    def from_settings(cls, settings: Settings) -> ContentPipeline:
        image_generator = ImagenClient(settings) if settings.gemini_api_key else None
        publisher = (
            WordPressPublisher.from_settings(settings) if settings.wordpress_configured else None
        )
        return cls(
            settings.db_path,
            DraftGenerator(ClaudeClient(settings)),
            FileContextProvider(settings.context_dir),
            image_generator=image_generator,
            publisher=publisher,
        )

    def close(self) -> None:
        """Close adapters that hold HTTP connections."""
        for adapter in (self._image_generator, self._publisher):
            close = getattr(adapter, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> ContentPipeline:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- Generation ---

    def _build_request(
        self,
        project_id: str,
        hypothesis_id: str,
        title: str,
        category: IdeaCategory,
        description: str = "",
        cluster_id: str | None = None,
        content_format: ContentFormat | None = None,
        prompt_part: str | None = None,
    ) -> GenerationRequest:
        context = self._context_provider.load(project_id, hypothesis_id)
        return GenerationRequest(
            title=title,
            category=category,
            description=description,
            format=content_format or format_for_category(category),
            context=context,
            cluster=context.cluster(cluster_id),
            prompt_part=prompt_part,
        )

    def generate_content_for_idea(
        self,
        backlog_idea_id: str,
        project_id: str,
        hypothesis_id: str,
        *,
        user_id: str = "system",
        with_image: bool = False,
    ) -> ContentItem:
        """Generate a draft for an idea and upsert it as the idea's live item.

        Nothing is written if generation or parsing fails.
        """
        idea = self.ideas.get_idea(backlog_idea_id)
        check_scope(idea, project_id, hypothesis_id)

        request = self._build_request(
            project_id,
            hypothesis_id,
            idea.title,
            idea.category,
            description=idea.description,
            cluster_id=idea.cluster_id,
        )
        draft = self._generator.generate(request)

        with get_session(self._db_path) as session:
            idea = session.get(BacklogIdea, backlog_idea_id)
            if idea is None:
                raise NotFoundError("BacklogIdea", backlog_idea_id)

            item = find_live_item_for_idea(
                session, backlog_idea_id, project_id, hypothesis_id
            )
            if item is None:
                item = ContentItem(
                    project_id=project_id,
                    hypothesis_id=hypothesis_id,
                    backlog_idea_id=backlog_idea_id,
                    title=draft.title or idea.title,
                    category=idea.category,
                    format=format_for_category(idea.category),
                    created_by=user_id,
                )
            else:
                logger.info("Replacing draft of content item %s for idea %s", item.id, idea.id)
                item.title = draft.title or idea.title
                item.category = idea.category

            item.outline = draft.outline or None
            item.content = draft.body
            self._sync.apply(session, PipelineEvent.CONTENT_GENERATED, item, idea, user_id=user_id)
            session.commit()
            session.refresh(item)

        if with_image:
            item = self.attach_image(item.id, prompt_hint=draft.suggested_image_prompt)
        return item

    def regenerate_content(
        self, item_id: str, prompt_part: str | None = None, *, user_id: str = "system"
    ) -> ContentItem:
        """Replace ``content`` only; title, category and status stay as they are."""
        item = self.items.get_content_item(item_id)

        description = ""
        cluster_id = None
        if item.backlog_idea_id:
            try:
                idea = self.ideas.get_idea(item.backlog_idea_id)
                description, cluster_id = idea.description, idea.cluster_id
            except NotFoundError:
                logger.warning(
                    "Content item %s references missing idea %s", item.id, item.backlog_idea_id
                )

        request = self._build_request(
            item.project_id,
            item.hypothesis_id,
            item.title,
            item.category,
            description=description,
            cluster_id=cluster_id,
            content_format=item.format,
            prompt_part=prompt_part,
        )
        if item.content:
            body = self._generator.regenerate(request, item.content, item.outline or "")
        else:
            body = self._generator.generate(request).body

        with get_session(self._db_path) as session:
            item = session.get(ContentItem, item_id)
            if item is None:
                raise NotFoundError("ContentItem", item_id)
            item.content = body
            item.updated_by = user_id
            item.updated_at = datetime.now()
            session.add(item)
            session.commit()
            session.refresh(item)

        logger.info("Regenerated content of item %s", item_id)
        return item

    def attach_image(self, item_id: str, prompt_hint: str | None = None) -> ContentItem:
        """Generate a hero image for an item. Failures leave ``image_url`` unset."""
        item = self.items.get_content_item(item_id)
        if self._image_generator is None:
            logger.warning("No image generator configured; item %s left without image", item_id)
            return item

        try:
            image_url = self._image_generator.generate(
                item.title, item.outline or "", prompt_hint
            )
        except UpstreamError as exc:
            logger.warning("Image generation failed for item %s: %s", item_id, exc)
            return item

        with get_session(self._db_path) as session:
            item = session.get(ContentItem, item_id)
            if item is None:
                raise NotFoundError("ContentItem", item_id)
            item.image_url = image_url
            item.updated_at = datetime.now()
            session.add(item)
            session.commit()
            session.refresh(item)
        return item

    # --- Status events ---

    def _apply_event(
        self,
        item_id: str,
        event: PipelineEvent,
        *,
        return_to: IdeaStatus | None = None,
        user_id: str = "system",
    ) -> ContentItem:
        with get_session(self._db_path) as session:
            item = session.get(ContentItem, item_id)
            if item is None:
                raise NotFoundError("ContentItem", item_id)
            if item.status not in _ALLOWED_FROM[event]:
                raise ValidationError(
                    f"Cannot apply {event.value} to content item {item_id} in status {item.status.value}"
                )
            idea = session.get(BacklogIdea, item.backlog_idea_id) if item.backlog_idea_id else None
            self._sync.apply(session, event, item, idea, return_to=return_to, user_id=user_id)
            session.commit()
            session.refresh(item)
        return item

    def move_to_review(self, item_id: str, *, user_id: str = "system") -> ContentItem:
        return self._apply_event(item_id, PipelineEvent.MOVED_TO_REVIEW, user_id=user_id)

    def mark_ready(self, item_id: str, *, user_id: str = "system") -> ContentItem:
        return self._apply_event(item_id, PipelineEvent.MARKED_READY, user_id=user_id)

    def unpublish(
        self,
        item_id: str,
        return_to: IdeaStatus = IdeaStatus.BACKLOG,
        *,
        user_id: str = "system",
    ) -> ContentItem:
        """Administrative rollback: item back to ready, idea to pending or backlog."""
        return self._apply_event(
            item_id, PipelineEvent.UNPUBLISHED, return_to=return_to, user_id=user_id
        )

    # --- Publishing ---

    def publish(
        self,
        item_id: str,
        project_id: str,
        hypothesis_id: str | None = None,
        *,
        publish_date: date | None = None,
        allow_override: bool = False,
        user_id: str = "system",
    ) -> PublishResult:
        """Publish an item and sync both statuses in one transaction.

        Adapter failure raises UpstreamError and writes nothing. If the post
        went live but the local write fails, StatusSyncError carries the post
        reference.
        """
        if self._publisher is None:
            raise UpstreamError("wordpress", "WordPress publishing is not configured")

        with get_session(self._db_path) as session:
            item = session.get(ContentItem, item_id)
            if item is None:
                raise NotFoundError("ContentItem", item_id)
            check_scope(item, project_id, hypothesis_id)
            if not (item.content or "").strip():
                raise ValidationError(f"Content item {item_id} has no content to publish")
            if item.status in (ContentStatus.PUBLISHED, ContentStatus.ARCHIVED):
                raise ValidationError(
                    f"Content item {item_id} is {item.status.value} and cannot be published"
                )
            publish_date = publish_date or item.publish_date
            assert_publish_date_available(
                session,
                item.project_id,
                item.hypothesis_id,
                publish_date,
                exclude_id=item.id,
                allow_override=allow_override,
            )

        result = self._publisher.publish(item, publish_date=publish_date)
        if not result.success:
            logger.error("Publish of %s failed, statuses unchanged: %s", item_id, result.error)
            raise UpstreamError("wordpress", result.error or "WordPress publish failed")

        try:
            with get_session(self._db_path) as session:
                item = session.get(ContentItem, item_id)
                if item is None:
                    raise NotFoundError("ContentItem", item_id)
                idea = (
                    session.get(BacklogIdea, item.backlog_idea_id) if item.backlog_idea_id else None
                )
                item.publish_date = publish_date
                self._sync.apply(session, PipelineEvent.PUBLISHED, item, idea, user_id=user_id)
                session.commit()
        except (SQLAlchemyError, NotFoundError) as exc:
            logger.critical(
                "WordPress post %s (%s) is live but content item %s was not marked published: %s",
                result.word_press_post_id,
                result.word_press_post_url,
                item_id,
                exc,
            )
            raise StatusSyncError(
                item_id, result.word_press_post_id, result.word_press_post_url, exc
            ) from exc

        logger.info("Published content item %s as %s", item_id, result.word_press_post_url)
        return result
