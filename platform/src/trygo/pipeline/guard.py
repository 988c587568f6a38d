"""Publish date guard: one content item per publish date within a scope.

Storage permits duplicate dates, so this check is the only enforcement
point. It must run before a date is committed. Concurrent publishers can
still race between the check and the write.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from sqlmodel import Session, select

from trygo.errors import PublishDateConflict
from trygo.storage.database import get_session
from trygo.storage.models import ContentItem

logger = logging.getLogger(__name__)


def assert_publish_date_available(
    session: Session,
    project_id: str,
    hypothesis_id: str,
    publish_date: date | None,
    exclude_id: str | None = None,
    allow_override: bool = False,
) -> None:
    """Raise PublishDateConflict if another item in scope holds ``publish_date``."""
    if publish_date is None or allow_override:
        return

    statement = select(ContentItem).where(
        ContentItem.project_id == project_id,
        ContentItem.hypothesis_id == hypothesis_id,
        ContentItem.publish_date == publish_date,
    )
    if exclude_id:
        statement = statement.where(ContentItem.id != exclude_id)

    holder = session.exec(statement).first()
    if holder is not None:
        logger.warning(
            "Publish date %s in %s/%s already held by %s", publish_date, project_id, hypothesis_id, holder.id
        )
        raise PublishDateConflict(publish_date, holder.id)


class PublishDateGuard:
    """Standalone entry point for callers that do not hold a session."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    def assert_available(
        self,
        project_id: str,
        hypothesis_id: str,
        publish_date: date | None,
        exclude_id: str | None = None,
        allow_override: bool = False,
    ) -> None:
        with get_session(self._db_path) as session:
            assert_publish_date_available(
                session, project_id, hypothesis_id, publish_date, exclude_id, allow_override
            )
