"""Read-only consistency sweep over one (project, hypothesis) scope."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from sqlmodel import select

from trygo.pipeline.sync import is_consistent
from trygo.storage.database import get_session
from trygo.storage.models import BacklogIdea, ContentItem, ContentStatus


@dataclass
class ReconciliationReport:
    """Anomalies found in one scope. Nothing here is repaired automatically."""

    project_id: str
    hypothesis_id: str
    orphaned_items: list[str] = field(default_factory=list)
    duplicate_live_items: dict[str, list[str]] = field(default_factory=dict)
    inconsistent_pairs: list[tuple[str, str, str, str]] = field(default_factory=list)
    duplicate_publish_dates: dict[date, list[str]] = field(default_factory=dict)

    @property
    def is_clean(self) -> bool:
        return not (
            self.orphaned_items
            or self.duplicate_live_items
            or self.inconsistent_pairs
            or self.duplicate_publish_dates
        )


def reconcile(db_path: Path, project_id: str, hypothesis_id: str) -> ReconciliationReport:
    """Report orphans, duplicate live items, status drift and duplicate dates."""
    report = ReconciliationReport(project_id=project_id, hypothesis_id=hypothesis_id)

    with get_session(db_path) as session:
        ideas = {
            idea.id: idea
            for idea in session.exec(
                select(BacklogIdea).where(
                    BacklogIdea.project_id == project_id,
                    BacklogIdea.hypothesis_id == hypothesis_id,
                )
            ).all()
        }
        items = session.exec(
            select(ContentItem).where(
                ContentItem.project_id == project_id,
                ContentItem.hypothesis_id == hypothesis_id,
            )
        ).all()

    live_by_idea: dict[str, list[str]] = defaultdict(list)
    by_date: dict[date, list[str]] = defaultdict(list)

    for item in items:
        if item.publish_date is not None:
            by_date[item.publish_date].append(item.id)
        if not item.backlog_idea_id:
            continue

        idea = ideas.get(item.backlog_idea_id)
        if idea is None:
            report.orphaned_items.append(item.id)
            continue
        if item.status is not ContentStatus.ARCHIVED:
            live_by_idea[idea.id].append(item.id)
        if not is_consistent(idea.status, item.status):
            report.inconsistent_pairs.append(
                (idea.id, idea.status.value, item.id, item.status.value)
            )

    report.duplicate_live_items = {k: v for k, v in live_by_idea.items() if len(v) > 1}
    report.duplicate_publish_dates = {k: v for k, v in by_date.items() if len(v) > 1}
    return report
