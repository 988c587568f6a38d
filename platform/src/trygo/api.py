"""Operation facade with the GraphQL field names and enum spellings.

Transport and auth live elsewhere; this layer only translates camelCase
dictionaries to pipeline calls and back.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from trygo.errors import PipelineError, ValidationError
from trygo.pipeline.service import ContentPipeline
from trygo.storage.content_items import ContentItemInput
from trygo.storage.models import (
    BacklogIdea,
    ContentFormat,
    ContentItem,
    IdeaCategory,
    IdeaStatus,
)

logger = logging.getLogger(__name__)

CATEGORY_TO_GRAPHQL = {
    IdeaCategory.PAIN: "PAINS",
    IdeaCategory.GOAL: "GOALS",
    IdeaCategory.TRIGGER: "TRIGGERS",
    IdeaCategory.FEATURE: "PRODUCT_FEATURES",
    IdeaCategory.BENEFIT: "BENEFITS",
    IdeaCategory.FAQ: "FAQS",
    IdeaCategory.INFO: "INFORMATIONAL",
}
GRAPHQL_TO_CATEGORY = {v: k for k, v in CATEGORY_TO_GRAPHQL.items()}

FORMAT_TO_GRAPHQL = {
    ContentFormat.BLOG: "BLOG",
    ContentFormat.COMMERCIAL: "COMMERCIAL_PAGE",
    ContentFormat.FAQ: "FAQ",
}
GRAPHQL_TO_FORMAT = {
    "BLOG": ContentFormat.BLOG,
    "FAQ": ContentFormat.FAQ,
    "COMMERCIAL": ContentFormat.COMMERCIAL,
    "ARTICLE": ContentFormat.BLOG,
    "COMMERCIAL_PAGE": ContentFormat.COMMERCIAL,
    "LANDING_PAGE": ContentFormat.COMMERCIAL,
}

_COMMERCIAL_CATEGORIES = {IdeaCategory.FEATURE, IdeaCategory.BENEFIT}


def category_from_graphql(value: str) -> str:
    """Accept ``PAINS`` as well as the stored ``pain`` spelling."""
    if value in GRAPHQL_TO_CATEGORY:
        return GRAPHQL_TO_CATEGORY[value].value
    return value.lower()


def format_from_graphql(value: str) -> str:
    if value in GRAPHQL_TO_FORMAT:
        return GRAPHQL_TO_FORMAT[value].value
    return value.lower()


def parse_date(value: object) -> date | None:
    """Date from a ``date``/``datetime`` or an ISO-ish string."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.parse(str(value)).date()
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid date: {value!r}") from None


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value else None


def idea_to_graphql(idea: BacklogIdea) -> dict[str, Any]:
    dismissed = idea.status is IdeaStatus.ARCHIVED
    return {
        "id": idea.id,
        "projectId": idea.project_id,
        "hypothesisId": idea.hypothesis_id,
        "backlogIdeaId": idea.id,
        "title": idea.title,
        "description": idea.description or None,
        "category": CATEGORY_TO_GRAPHQL[idea.category],
        "contentType": "COMMERCIAL_PAGE" if idea.category in _COMMERCIAL_CATEGORIES else "ARTICLE",
        "clusterId": idea.cluster_id,
        "status": idea.status.value.upper(),
        "dismissed": dismissed,
        "isDismissed": dismissed,
        "isAddedToBacklog": idea.status not in (IdeaStatus.PENDING, IdeaStatus.ARCHIVED),
        "createdAt": _iso(idea.created_at),
        "updatedAt": _iso(idea.updated_at),
    }


def item_to_graphql(item: ContentItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "projectId": item.project_id,
        "hypothesisId": item.hypothesis_id,
        "backlogIdeaId": item.backlog_idea_id,
        "title": item.title,
        "category": CATEGORY_TO_GRAPHQL[item.category],
        "format": FORMAT_TO_GRAPHQL[item.format],
        "outline": item.outline,
        "content": item.content,
        "imageUrl": item.image_url,
        "status": item.status.value.upper(),
        "dueDate": _iso(item.due_date),
        "publishDate": _iso(item.publish_date),
        "ownerId": item.owner_id,
        "reviewerId": item.reviewer_id,
        "channel": item.channel,
        "createdBy": item.created_by,
        "updatedBy": item.updated_by,
        "createdAt": _iso(item.created_at),
        "updatedAt": _iso(item.updated_at),
    }


class _CamelInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateContentInput(_CamelInput):
    backlog_idea_id: str
    project_id: str
    hypothesis_id: str


class PublishToWordPressInput(_CamelInput):
    content_item_id: str
    project_id: str
    hypothesis_id: str | None = None
    publish_date: str | date | None = None
    allow_override: bool = False


class CreateCustomContentIdeaInput(_CamelInput):
    project_id: str
    hypothesis_id: str
    title: str
    category: str
    description: str = ""
    cluster_id: str | None = None


class GenerateImageInput(_CamelInput):
    content_item_id: str
    title: str = ""
    description: str | None = None


def _validate(model: type[BaseModel], data: dict) -> Any:
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(str(exc)) from exc


class ContentApi:
    """One method per GraphQL operation; ``execute`` dispatches by field name."""

    def __init__(self, pipeline: ContentPipeline) -> None:
        self._pipeline = pipeline
        self._operations = {
            "seoAgentContentIdeas": self.seo_agent_content_ideas,
            "contentItemByBacklogIdea": self.content_item_by_backlog_idea,
            "generateContentForBacklogIdea": self.generate_content_for_backlog_idea,
            "upsertContentItem": self.upsert_content_item,
            "publishToWordPress": self.publish_to_word_press,
            "regenerateContent": self.regenerate_content,
            "dismissContentIdea": self.dismiss_content_idea,
            "createCustomContentIdea": self.create_custom_content_idea,
            "generateImageForContent": self.generate_image_for_content,
        }

    @property
    def operations(self) -> list[str]:
        return list(self._operations)

    def execute(self, operation: str, **kwargs: Any) -> Any:
        try:
            handler = self._operations[operation]
        except KeyError:
            raise ValidationError(f"Unknown operation: {operation}") from None
        return handler(**kwargs)

    # --- Queries ---

    def seo_agent_content_ideas(
        self, projectId: str, hypothesisId: str | None = None
    ) -> list[dict]:
        return [
            idea_to_graphql(idea)
            for idea in self._pipeline.ideas.list_ideas(projectId, hypothesisId)
        ]

    def content_item_by_backlog_idea(self, backlogIdeaId: str) -> dict | None:
        item = self._pipeline.items.get_content_item_by_idea(backlogIdeaId)
        return item_to_graphql(item) if item else None

    # --- Mutations ---

    def generate_content_for_backlog_idea(self, input: dict, userId: str = "system") -> dict:
        args = _validate(GenerateContentInput, input)
        item = self._pipeline.generate_content_for_idea(
            args.backlog_idea_id, args.project_id, args.hypothesis_id, user_id=userId
        )
        return item_to_graphql(item)

    def upsert_content_item(self, input: dict, userId: str | None = None) -> dict:
        data = dict(input)
        if userId:
            data["userId"] = userId
        if data.get("category"):
            data["category"] = category_from_graphql(data["category"])
        if data.get("format"):
            data["format"] = format_from_graphql(data["format"])
        if data.get("status"):
            data["status"] = str(data["status"]).lower()
        if "publishDate" in data:
            data["publishDate"] = parse_date(data["publishDate"])
        item = self._pipeline.items.upsert_content_item(_validate(ContentItemInput, data))
        return item_to_graphql(item)

    def publish_to_word_press(self, input: dict, userId: str = "system") -> dict:
        """Publish and report every failure in ``error`` rather than raising."""
        try:
            args = _validate(PublishToWordPressInput, input)
            result = self._pipeline.publish(
                args.content_item_id,
                args.project_id,
                args.hypothesis_id,
                publish_date=parse_date(args.publish_date),
                allow_override=args.allow_override,
                user_id=userId,
            )
        except PipelineError as exc:
            logger.warning("publishToWordPress failed: %s", exc)
            return {
                "success": False,
                "wordPressPostId": None,
                "wordPressPostUrl": None,
                "error": str(exc),
            }
        return {
            "success": True,
            "wordPressPostId": result.word_press_post_id,
            "wordPressPostUrl": result.word_press_post_url,
            "error": None,
        }

    def regenerate_content(
        self, id: str, promptPart: str | None = None, userId: str = "system"
    ) -> dict:
        item = self._pipeline.regenerate_content(id, promptPart, user_id=userId)
        return item_to_graphql(item)

    def dismiss_content_idea(self, id: str, userId: str = "system") -> dict:
        idea = self._pipeline.ideas.update_idea_status(id, IdeaStatus.ARCHIVED, user_id=userId)
        return idea_to_graphql(idea)

    def create_custom_content_idea(self, input: dict, userId: str = "system") -> dict:
        args = _validate(CreateCustomContentIdeaInput, input)
        idea = self._pipeline.ideas.create_idea(
            args.project_id,
            args.hypothesis_id,
            args.title,
            args.description,
            category_from_graphql(args.category),
            args.cluster_id,
            user_id=userId,
        )
        return idea_to_graphql(idea)

    def generate_image_for_content(self, input: dict) -> dict:
        args = _validate(GenerateImageInput, input)
        hint = " ".join(part for part in (args.title, args.description) if part) or None
        item = self._pipeline.attach_image(args.content_item_id, prompt_hint=hint)
        return item_to_graphql(item)
