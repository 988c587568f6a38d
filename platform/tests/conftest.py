"""Shared test fixtures."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from trygo.config import Settings
from trygo.content.context import ClusterContext, ProjectContext, StaticContextProvider
from trygo.content.drafts import DraftGenerator
from trygo.errors import UpstreamError
from trygo.llm.client import ClaudeClient
from trygo.pipeline.service import ContentPipeline
from trygo.publishing.publisher import PublishResult
from trygo.storage.content_items import ContentItemStore
from trygo.storage.database import _engines
from trygo.storage.ideas import IdeaStore
from trygo.storage.models import ContentItem

DRAFT_JSON = """```json
{
  "title": "Onboarding alone: a founder's playbook",
  "summary": "How solo founders can onboard users without a team.",
  "sections": [
    {"heading": "Why onboarding breaks", "body": "Most solo founders skip it."},
    {"heading": "A three step routine", "body": "<p>Call, record, automate.</p>"}
  ],
  "cta": {"headline": "Try it this week", "body": "Start with one call.", "buttonLabel": "Start", "url_hint": "https://trygo.io"},
  "imagePrompt": "A founder at a kitchen table talking to a customer on a laptop"
}
```"""


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory structure."""
    (tmp_path / "context").mkdir()
    return tmp_path


@pytest.fixture
def settings(tmp_data_dir: Path) -> Settings:
    """Create test settings with temporary paths."""
    return Settings(
        anthropic_api_key="test-key-not-real",
        gemini_api_key="test-gemini-key",
        model="claude-sonnet-4-20250514",
        max_tokens=1024,
        temperature=0.7,
        wordpress_base_url="https://blog.example.com",
        wordpress_username="editor",
        wordpress_app_password="abcd efgh ijkl",
        db_path=tmp_data_dir / "test.db",
        context_dir=tmp_data_dir / "context",
    )


@pytest.fixture(autouse=True)
def _reset_engines():
    """Each test gets a fresh engine cache."""
    yield
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()


@pytest.fixture
def mock_claude_client(settings: Settings) -> ClaudeClient:
    """Create a ClaudeClient with a mocked Anthropic SDK."""
    client = ClaudeClient(settings)
    # Replace the internal Anthropic client with a mock
    mock_anthropic = MagicMock()
    client._client = mock_anthropic
    return client


def make_mock_response(text: str, input_tokens: int = 100, output_tokens: int = 200):
    """Helper to create a mock Anthropic API response."""
    mock_response = MagicMock()
    mock_response.content = [MagicMock(text=text)]
    mock_response.usage.input_tokens = input_tokens
    mock_response.usage.output_tokens = output_tokens
    return mock_response


@pytest.fixture
def project_context() -> ProjectContext:
    return ProjectContext(
        project_title="TRYGO",
        hypothesis_title="Solo founders need guided onboarding",
        persona="First-time solo founder",
        pains=["No time to talk to users"],
        goals=["First ten paying customers"],
        problems=["Onboarding is ad hoc"],
        solutions=["Scripted onboarding calls"],
        unique_value_proposition="Validate faster with AI",
        clusters={
            "c1": ClusterContext(
                title="founder onboarding", intent="informational", keywords=["onboarding", "founder"]
            )
        },
    )


@pytest.fixture
def idea_store(settings: Settings) -> IdeaStore:
    return IdeaStore(settings.db_path)


@pytest.fixture
def item_store(settings: Settings) -> ContentItemStore:
    return ContentItemStore(settings.db_path)


class FakeImageGenerator:
    """Records calls; fails when ``error`` is set."""

    def __init__(self, url: str = "data:image/png;base64,aGVsbG8=", error: str | None = None):
        self.url = url
        self.error = error
        self.calls: list[tuple] = []

    def generate(self, title: str, description: str = "", prompt_hint: str | None = None) -> str:
        self.calls.append((title, description, prompt_hint))
        if self.error:
            raise UpstreamError("image", self.error)
        return self.url


class FakePublisher:
    """Returns a fixed result and records what was published."""

    def __init__(self, result: PublishResult | None = None):
        self.result = result or PublishResult(
            success=True,
            word_press_post_id=101,
            word_press_post_url="https://blog.example.com/onboarding-alone",
        )
        self.published: list[tuple[str, date | None]] = []

    def publish(self, item: ContentItem, *, publish_date: date | None = None) -> PublishResult:
        self.published.append((item.id, publish_date))
        return self.result


@pytest.fixture
def fake_images() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def fake_publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def pipeline(
    settings: Settings,
    mock_claude_client: ClaudeClient,
    project_context: ProjectContext,
    fake_images: FakeImageGenerator,
    fake_publisher: FakePublisher,
) -> ContentPipeline:
    """Pipeline over a temp database with a mocked LLM and fake adapters."""
    mock_claude_client._client.messages.create.return_value = make_mock_response(DRAFT_JSON)
    return ContentPipeline(
        settings.db_path,
        DraftGenerator(mock_claude_client),
        StaticContextProvider(project_context),
        image_generator=fake_images,
        publisher=fake_publisher,
    )
