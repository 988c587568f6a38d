"""Tests for the read-only reconciliation report."""

from __future__ import annotations

from datetime import date

from trygo.config import Settings
from trygo.pipeline.reconcile import reconcile
from trygo.pipeline.service import ContentPipeline
from trygo.storage.content_items import ContentItemInput
from trygo.storage.models import IdeaStatus


def test_clean_scope(pipeline: ContentPipeline, settings: Settings) -> None:
    idea = pipeline.ideas.create_idea("P", "H", "Title", category="pain")
    pipeline.generate_content_for_idea(idea.id, "P", "H")

    assert reconcile(settings.db_path, "P", "H").is_clean


def test_reports_every_anomaly(pipeline: ContentPipeline, settings: Settings) -> None:
    """Orphans, duplicates, drift and shared dates are all listed."""
    orphan_idea = pipeline.ideas.create_idea("P", "H", "Orphan", category="pain")
    orphan = pipeline.generate_content_for_idea(orphan_idea.id, "P", "H")
    pipeline.ideas.delete_idea(orphan_idea.id)

    drifted_idea = pipeline.ideas.create_idea("P", "H", "Drifted", category="goal")
    drifted = pipeline.generate_content_for_idea(drifted_idea.id, "P", "H")
    pipeline.ideas.update_idea_status(drifted_idea.id, IdeaStatus.PUBLISHED)

    base = dict(project_id="P", hypothesis_id="H", category="goal", format="blog", user_id="u")
    duplicate = pipeline.items.upsert_content_item(
        ContentItemInput(title="Dupe", backlog_idea_id=drifted_idea.id, publish_date=date(2025, 12, 1), **base)
    )
    other = pipeline.items.upsert_content_item(
        ContentItemInput(title="Same day", publish_date=date(2025, 12, 1), allow_publish_date_override=True, **base)
    )

    report = reconcile(settings.db_path, "P", "H")

    assert not report.is_clean
    assert report.orphaned_items == [orphan.id]
    assert sorted(report.duplicate_live_items[drifted_idea.id]) == sorted([drifted.id, duplicate.id])
    assert (drifted_idea.id, "published", drifted.id, "draft") in report.inconsistent_pairs
    assert sorted(report.duplicate_publish_dates[date(2025, 12, 1)]) == sorted([duplicate.id, other.id])


def test_reconcile_never_writes(pipeline: ContentPipeline, settings: Settings) -> None:
    idea = pipeline.ideas.create_idea("P", "H", "Title", category="pain")
    item = pipeline.generate_content_for_idea(idea.id, "P", "H")
    pipeline.ideas.update_idea_status(idea.id, IdeaStatus.PENDING)

    reconcile(settings.db_path, "P", "H")

    assert pipeline.ideas.get_idea(idea.id).status is IdeaStatus.PENDING
    assert pipeline.items.get_content_item(item.id).updated_at == item.updated_at
