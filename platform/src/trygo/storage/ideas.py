"""Backlog idea persistence."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from sqlmodel import col, select

from trygo.errors import NotFoundError, ScopeError, ValidationError
from trygo.storage.database import get_session
from trygo.storage.models import BacklogIdea, IdeaCategory, IdeaStatus

logger = logging.getLogger(__name__)


def parse_category(value: str | IdeaCategory) -> IdeaCategory:
    """Coerce a raw category into the closed enumeration."""
    try:
        return IdeaCategory(value)
    except ValueError:
        allowed = ", ".join(c.value for c in IdeaCategory)
        raise ValidationError(f"Invalid category: {value!r} (expected one of {allowed})") from None


def check_scope(entity: object, project_id: str, hypothesis_id: str | None) -> None:
    """Reject access to an entity under a (project, hypothesis) pair it does not belong to.

    A missing ``hypothesis_id`` only checks the project.
    """
    if entity.project_id != project_id or (
        hypothesis_id is not None and entity.hypothesis_id != hypothesis_id
    ):
        raise ScopeError(
            f"{type(entity).__name__} {entity.id} does not belong to "
            f"project {project_id} / hypothesis {hypothesis_id}"
        )


class IdeaStore:
    """CRUD over backlog ideas. Status changes here are not validated."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    def create_idea(
        self,
        project_id: str,
        hypothesis_id: str,
        title: str,
        description: str = "",
        category: str | IdeaCategory = IdeaCategory.INFO,
        cluster_id: str | None = None,
        *,
        scheduled_date: datetime | None = None,
        user_id: str = "system",
    ) -> BacklogIdea:
        if not project_id or not hypothesis_id:
            raise ValidationError("projectId and hypothesisId are required")
        if not title or not title.strip():
            raise ValidationError("Idea title must not be empty")

        idea = BacklogIdea(
            project_id=project_id,
            hypothesis_id=hypothesis_id,
            title=title.strip(),
            description=description or "",
            category=parse_category(category),
            cluster_id=cluster_id or None,
            status=IdeaStatus.PENDING,
            scheduled_date=scheduled_date,
            created_by=user_id,
            updated_by=user_id,
        )
        with get_session(self._db_path) as session:
            session.add(idea)
            session.commit()
            session.refresh(idea)

        logger.info("Created idea %s (%s) in %s/%s", idea.id, idea.category.value, project_id, hypothesis_id)
        return idea

    def get_idea(self, idea_id: str) -> BacklogIdea:
        with get_session(self._db_path) as session:
            idea = session.get(BacklogIdea, idea_id)
        if idea is None:
            raise NotFoundError("BacklogIdea", idea_id)
        return idea

    def list_ideas(self, project_id: str, hypothesis_id: str | None = None) -> list[BacklogIdea]:
        """All ideas of a project, optionally narrowed to one hypothesis. Unpaginated."""
        statement = select(BacklogIdea).where(BacklogIdea.project_id == project_id)
        if hypothesis_id:
            statement = statement.where(BacklogIdea.hypothesis_id == hypothesis_id)
        statement = statement.order_by(col(BacklogIdea.updated_at).desc())

        with get_session(self._db_path) as session:
            return list(session.exec(statement).all())

    def update_idea_status(
        self, idea_id: str, new_status: str | IdeaStatus, *, user_id: str = "system"
    ) -> BacklogIdea:
        """Set the status directly, for corrective and administrative overrides."""
        try:
            status = IdeaStatus(new_status)
        except ValueError:
            raise ValidationError(f"Invalid idea status: {new_status!r}") from None
        with get_session(self._db_path) as session:
            idea = session.get(BacklogIdea, idea_id)
            if idea is None:
                raise NotFoundError("BacklogIdea", idea_id)
            previous = idea.status
            idea.status = status
            idea.updated_by = user_id
            idea.updated_at = datetime.now()
            session.add(idea)
            session.commit()
            session.refresh(idea)

        logger.info("Idea %s status %s -> %s (override)", idea_id, previous.value, status.value)
        return idea

    def delete_idea(self, idea_id: str) -> bool:
        """Hard delete. Linked content items are left in place."""
        with get_session(self._db_path) as session:
            idea = session.get(BacklogIdea, idea_id)
            if idea is None:
                return False
            session.delete(idea)
            session.commit()

        logger.info("Deleted idea %s", idea_id)
        return True
