"""SQLModel database models for backlog ideas and content items."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from uuid import uuid4

from sqlmodel import Field, SQLModel


class IdeaCategory(str, Enum):
    PAIN = "pain"
    GOAL = "goal"
    TRIGGER = "trigger"
    FEATURE = "feature"
    BENEFIT = "benefit"
    FAQ = "faq"
    INFO = "info"


class IdeaStatus(str, Enum):
    PENDING = "pending"
    BACKLOG = "backlog"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    PUBLISHED = "published"


class ContentFormat(str, Enum):
    BLOG = "blog"
    COMMERCIAL = "commercial"
    FAQ = "faq"


class ContentStatus(str, Enum):
    DRAFT = "draft"
    REVIEW = "review"
    READY = "ready"
    PUBLISHED = "published"
    ARCHIVED = "archived"


def new_id() -> str:
    """Opaque, stable identifier for persisted entities."""
    return uuid4().hex


class BacklogIdea(SQLModel, table=True):
    """A proposed piece of content before it is written."""

    id: str = Field(default_factory=new_id, primary_key=True)
    project_id: str = Field(index=True)
    hypothesis_id: str = Field(index=True)
    title: str
    description: str = ""
    category: IdeaCategory
    cluster_id: str | None = None
    status: IdeaStatus = Field(default=IdeaStatus.PENDING, index=True)
    scheduled_date: datetime | None = None
    created_by: str = "system"
    updated_by: str = "system"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ContentItem(SQLModel, table=True):
    """Generated or authored content, optionally linked to a backlog idea.

    ``backlog_idea_id`` is a soft reference: the idea may have been deleted,
    and readers must tolerate that.
    """

    id: str = Field(default_factory=new_id, primary_key=True)
    project_id: str = Field(index=True)
    hypothesis_id: str = Field(index=True)
    backlog_idea_id: str | None = Field(default=None, index=True)
    title: str
    category: IdeaCategory
    format: ContentFormat = ContentFormat.BLOG
    outline: str | None = None
    content: str | None = None
    image_url: str | None = None
    status: ContentStatus = Field(default=ContentStatus.DRAFT, index=True)
    due_date: datetime | None = None
    publish_date: date | None = Field(default=None, index=True)
    owner_id: str | None = None
    reviewer_id: str | None = None
    channel: str | None = None
    created_by: str = "system"
    updated_by: str = "system"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
