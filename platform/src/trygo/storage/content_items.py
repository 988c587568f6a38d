"""Content item persistence."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session, col, select

from trygo.errors import NotFoundError, ValidationError
from trygo.pipeline.guard import assert_publish_date_available
from trygo.storage.database import get_session
from trygo.storage.ideas import check_scope, parse_category
from trygo.storage.models import BacklogIdea, ContentFormat, ContentItem, ContentStatus

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("project_id", "hypothesis_id", "title", "category", "format", "user_id")


class ContentItemInput(BaseModel):
    """Fields accepted by ``upsert_content_item``.

    Accepts both snake_case and the camelCase names used by the API layer.
    Everything is optional here so that missing fields surface as our own
    ValidationError rather than a pydantic one.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    project_id: str | None = None
    hypothesis_id: str | None = None
    backlog_idea_id: str | None = None
    title: str | None = None
    category: str | None = None
    format: str | None = None
    outline: str | None = None
    content: str | None = None
    image_url: str | None = None
    status: str | None = None
    due_date: datetime | None = None
    publish_date: date | None = None
    allow_publish_date_override: bool = False
    owner_id: str | None = None
    reviewer_id: str | None = None
    channel: str | None = None
    user_id: str | None = None


def parse_format(value: str | ContentFormat) -> ContentFormat:
    try:
        return ContentFormat(value)
    except ValueError:
        raise ValidationError(f"Invalid format: {value!r}") from None


def parse_content_status(value: str | ContentStatus) -> ContentStatus:
    try:
        return ContentStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid content status: {value!r}") from None


def find_live_item_for_idea(
    session: Session,
    backlog_idea_id: str,
    project_id: str | None = None,
    hypothesis_id: str | None = None,
) -> ContentItem | None:
    """The non-archived item linked to an idea, most recently updated first.

    Items outside the given (project, hypothesis) are never returned.
    """
    statement = select(ContentItem).where(
        ContentItem.backlog_idea_id == backlog_idea_id,
        ContentItem.status != ContentStatus.ARCHIVED,
    )
    if project_id is not None:
        statement = statement.where(ContentItem.project_id == project_id)
    if hypothesis_id is not None:
        statement = statement.where(ContentItem.hypothesis_id == hypothesis_id)
    statement = statement.order_by(col(ContentItem.updated_at).desc())
    return session.exec(statement).first()


class ContentItemStore:
    """CRUD over content items, keyed by id or by linked backlog idea."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    def upsert_content_item(self, data: ContentItemInput) -> ContentItem:
        """Create an item, or fully replace the mutable fields of ``data.id``."""
        missing = [name for name in _REQUIRED_FIELDS if not getattr(data, name)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        category = parse_category(data.category)
        content_format = parse_format(data.format)
        status = parse_content_status(data.status) if data.status else None
        if status is ContentStatus.PUBLISHED and not (data.content or "").strip():
            raise ValidationError("A published content item must have content")

        with get_session(self._db_path) as session:
            if data.id:
                item = session.get(ContentItem, data.id)
                if item is None:
                    raise NotFoundError("ContentItem", data.id)
                check_scope(item, data.project_id, data.hypothesis_id)
            else:
                item = ContentItem(
                    project_id=data.project_id,
                    hypothesis_id=data.hypothesis_id,
                    title=data.title,
                    category=category,
                    created_by=data.user_id,
                )

            assert_publish_date_available(
                session,
                data.project_id,
                data.hypothesis_id,
                data.publish_date,
                exclude_id=data.id,
                allow_override=data.allow_publish_date_override,
            )

            if data.backlog_idea_id:
                idea = session.get(BacklogIdea, data.backlog_idea_id)
                if idea is None:
                    logger.warning(
                        "Content item links to missing idea %s", data.backlog_idea_id
                    )
                else:
                    check_scope(idea, data.project_id, data.hypothesis_id)

            item.backlog_idea_id = data.backlog_idea_id
            item.title = data.title
            item.category = category
            item.format = content_format
            item.outline = data.outline
            item.content = data.content
            item.image_url = data.image_url
            item.due_date = data.due_date
            item.publish_date = data.publish_date
            item.owner_id = data.owner_id
            item.reviewer_id = data.reviewer_id
            item.channel = data.channel
            if status is not None:
                item.status = status
            item.updated_by = data.user_id
            item.updated_at = datetime.now()

            session.add(item)
            session.commit()
            session.refresh(item)

        logger.info("Upserted content item %s (%s)", item.id, "updated" if data.id else "created")
        return item

    def get_content_item(self, item_id: str) -> ContentItem:
        with get_session(self._db_path) as session:
            item = session.get(ContentItem, item_id)
        if item is None:
            raise NotFoundError("ContentItem", item_id)
        return item

    def get_content_item_by_idea(self, backlog_idea_id: str) -> ContentItem | None:
        """The live item in the idea's own scope. Dangling ids match any scope."""
        with get_session(self._db_path) as session:
            idea = session.get(BacklogIdea, backlog_idea_id)
            if idea is None:
                return find_live_item_for_idea(session, backlog_idea_id)
            return find_live_item_for_idea(
                session, backlog_idea_id, idea.project_id, idea.hypothesis_id
            )

    def list_content_items(
        self, project_id: str, hypothesis_id: str | None = None
    ) -> list[ContentItem]:
        statement = select(ContentItem).where(ContentItem.project_id == project_id)
        if hypothesis_id:
            statement = statement.where(ContentItem.hypothesis_id == hypothesis_id)
        statement = statement.order_by(col(ContentItem.updated_at).desc())

        with get_session(self._db_path) as session:
            return list(session.exec(statement).all())
