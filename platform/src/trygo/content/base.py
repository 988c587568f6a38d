"""Abstract base class for content generators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from trygo.content.context import ClusterContext, ProjectContext
from trygo.llm.client import ClaudeClient
from trygo.storage.models import ContentFormat, IdeaCategory

# How each idea category is framed for the writer
CATEGORY_ANGLES = {
    IdeaCategory.PAIN: "Speak directly to a pain the audience feels and show a way out.",
    IdeaCategory.GOAL: "Help the reader reach a goal they care about, step by step.",
    IdeaCategory.TRIGGER: "Start from the moment that pushes the reader to look for a solution.",
    IdeaCategory.FEATURE: "Explain a product capability through the problem it removes.",
    IdeaCategory.BENEFIT: "Make a concrete outcome tangible with examples and numbers.",
    IdeaCategory.FAQ: "Answer the question plainly first, then add depth and nuance.",
    IdeaCategory.INFO: "Teach the topic thoroughly for a curious, practical reader.",
}


@dataclass
class GenerationRequest:
    """Input parameters for content generation."""

    title: str
    category: IdeaCategory
    description: str = ""
    format: ContentFormat = ContentFormat.BLOG
    context: ProjectContext = field(default_factory=ProjectContext)
    cluster: ClusterContext | None = None
    prompt_part: str | None = None


@dataclass
class GeneratedDraft:
    """Parsed output from a content generator."""

    title: str
    body: str
    outline: str = ""
    suggested_image_prompt: str | None = None
    metadata: dict = field(default_factory=dict)


class BaseGenerator(ABC):
    """Base class for content generators."""

    def __init__(self, client: ClaudeClient) -> None:
        self._client = client

    @abstractmethod
    def generate(self, request: GenerationRequest) -> GeneratedDraft:
        """Generate a draft from a request."""
        ...

    @abstractmethod
    def get_system_prompt(self, request: GenerationRequest) -> str:
        """Build the system prompt for this request."""
        ...
