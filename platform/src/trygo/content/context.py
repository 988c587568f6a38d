"""Project and hypothesis context fed into generation prompts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ClusterContext(BaseModel):
    """Keyword cluster an idea belongs to."""

    title: str
    intent: str = "informational"
    keywords: list[str] = Field(default_factory=list)


class ProjectContext(BaseModel):
    """Snapshot of lean canvas, ICP and cluster data for one scope."""

    project_title: str = ""
    hypothesis_title: str = ""
    hypothesis_description: str = ""
    problems: list[str] = Field(default_factory=list)
    solutions: list[str] = Field(default_factory=list)
    unique_value_proposition: str = ""
    persona: str = ""
    pains: list[str] = Field(default_factory=list)
    goals: list[str] = Field(default_factory=list)
    triggers: list[str] = Field(default_factory=list)
    clusters: dict[str, ClusterContext] = Field(default_factory=dict)
    language: str | None = None

    def cluster(self, cluster_id: str | None) -> ClusterContext | None:
        if not cluster_id:
            return None
        return self.clusters.get(cluster_id)

    @classmethod
    def load(cls, directory: Path, project_id: str, hypothesis_id: str) -> ProjectContext:
        """Load ``<project>/<hypothesis>.json`` or ``<project>.json``, else an empty context."""
        for path in (directory / project_id / f"{hypothesis_id}.json", directory / f"{project_id}.json"):
            if path.exists():
                return cls.model_validate_json(path.read_text())
        logger.debug("No context file for %s/%s under %s", project_id, hypothesis_id, directory)
        return cls()


class ContextProvider(Protocol):
    def load(self, project_id: str, hypothesis_id: str) -> ProjectContext: ...


class FileContextProvider:
    """Reads context snapshots exported as JSON files."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def load(self, project_id: str, hypothesis_id: str) -> ProjectContext:
        return ProjectContext.load(self._directory, project_id, hypothesis_id)


class StaticContextProvider:
    """Returns the same context for every scope."""

    def __init__(self, context: ProjectContext | None = None) -> None:
        self._context = context or ProjectContext()

    def load(self, project_id: str, hypothesis_id: str) -> ProjectContext:
        return self._context
