"""Status synchronizer keeping backlog ideas and content items in step.

The table below is the complete transition set. A failed publish is not an
event: it leaves both entities as they were.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlmodel import Session

from trygo.errors import ValidationError
from trygo.storage.models import BacklogIdea, ContentItem, ContentStatus, IdeaStatus

logger = logging.getLogger(__name__)


class PipelineEvent(str, Enum):
    IDEA_CREATED = "idea_created"
    CONTENT_GENERATED = "content_generated"
    MOVED_TO_REVIEW = "moved_to_review"
    MARKED_READY = "marked_ready"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


@dataclass(frozen=True)
class Transition:
    idea_status: IdeaStatus | None
    content_status: ContentStatus | None


TRANSITIONS: dict[PipelineEvent, Transition] = {
    PipelineEvent.IDEA_CREATED: Transition(IdeaStatus.PENDING, None),
    PipelineEvent.CONTENT_GENERATED: Transition(IdeaStatus.SCHEDULED, ContentStatus.DRAFT),
    PipelineEvent.MOVED_TO_REVIEW: Transition(IdeaStatus.SCHEDULED, ContentStatus.REVIEW),
    PipelineEvent.MARKED_READY: Transition(IdeaStatus.SCHEDULED, ContentStatus.READY),
    PipelineEvent.PUBLISHED: Transition(IdeaStatus.PUBLISHED, ContentStatus.PUBLISHED),
    # Idea side is chosen by the caller: pending or backlog
    PipelineEvent.UNPUBLISHED: Transition(IdeaStatus.BACKLOG, ContentStatus.READY),
}

RETURN_TO_STATUSES = frozenset({IdeaStatus.PENDING, IdeaStatus.BACKLOG})

# Idea statuses each content status may legitimately sit next to
_COMPATIBLE_IDEA_STATUSES: dict[ContentStatus, frozenset[IdeaStatus]] = {
    ContentStatus.DRAFT: frozenset({IdeaStatus.SCHEDULED}),
    ContentStatus.REVIEW: frozenset({IdeaStatus.SCHEDULED}),
    ContentStatus.READY: frozenset({IdeaStatus.SCHEDULED}) | RETURN_TO_STATUSES,
    ContentStatus.PUBLISHED: frozenset({IdeaStatus.PUBLISHED}),
    ContentStatus.ARCHIVED: frozenset(IdeaStatus),
}


def resolve(event: PipelineEvent, return_to: IdeaStatus | None = None) -> Transition:
    """Target statuses for ``event``."""
    transition = TRANSITIONS[event]
    if event is PipelineEvent.UNPUBLISHED and return_to is not None:
        if return_to not in RETURN_TO_STATUSES:
            raise ValidationError(
                f"Unpublished ideas return to pending or backlog, not {return_to.value}"
            )
        return Transition(return_to, transition.content_status)
    return transition


def is_consistent(idea_status: IdeaStatus, content_status: ContentStatus) -> bool:
    """True if the pair is one the transition table can produce."""
    return idea_status in _COMPATIBLE_IDEA_STATUSES[content_status]


class StatusSynchronizer:
    """Applies pipeline events to an (item, idea) pair inside one session.

    The caller owns the session and commits once, so both writes land
    together or not at all.
    """

    def apply(
        self,
        session: Session,
        event: PipelineEvent,
        item: ContentItem | None,
        idea: BacklogIdea | None,
        *,
        return_to: IdeaStatus | None = None,
        user_id: str = "system",
    ) -> Transition:
        transition = resolve(event, return_to)
        now = datetime.now()

        if item is not None and transition.content_status is not None:
            logger.info(
                "Content item %s: %s -> %s (%s)",
                item.id, item.status.value, transition.content_status.value, event.value,
            )
            item.status = transition.content_status
            item.updated_by = user_id
            item.updated_at = now
            session.add(item)

        if idea is None:
            if item is not None and item.backlog_idea_id:
                logger.warning(
                    "Content item %s references missing idea %s; idea status not synced",
                    item.id, item.backlog_idea_id,
                )
        elif transition.idea_status is not None:
            logger.info(
                "Idea %s: %s -> %s (%s)",
                idea.id, idea.status.value, transition.idea_status.value, event.value,
            )
            idea.status = transition.idea_status
            idea.updated_by = user_id
            idea.updated_at = now
            session.add(idea)

        return transition
