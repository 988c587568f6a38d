"""Tests for the LLM client wrapper and prompt rendering."""

from __future__ import annotations

from unittest.mock import MagicMock

import anthropic
import httpx
import pytest
from jinja2 import UndefinedError

from trygo.config import Settings
from trygo.errors import UpstreamError
from trygo.llm.client import ClaudeClient, _is_retryable
from trygo.llm.prompts import render
from tests.conftest import make_mock_response

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def test_generate_returns_text(mock_claude_client: ClaudeClient) -> None:
    """Test that generate() returns the text from Claude's response."""
    mock_claude_client._client.messages.create.return_value = make_mock_response(
        "Hello, this is a test response."
    )

    result = mock_claude_client.generate(
        system="You are a test assistant.",
        messages=[{"role": "user", "content": "Say hello"}],
    )

    assert result == "Hello, this is a test response."
    assert mock_claude_client._total_input_tokens == 100
    assert mock_claude_client._total_output_tokens == 200


def test_usage_summary_accumulates(mock_claude_client: ClaudeClient) -> None:
    """Test that token usage accumulates across calls."""
    mock_claude_client._client.messages.create.return_value = make_mock_response(
        "Response 1", input_tokens=50, output_tokens=100
    )
    mock_claude_client.generate(system="test", messages=[{"role": "user", "content": "1"}])

    mock_claude_client._client.messages.create.return_value = make_mock_response(
        "Response 2", input_tokens=75, output_tokens=150
    )
    mock_claude_client.generate(system="test", messages=[{"role": "user", "content": "2"}])

    summary = mock_claude_client.usage_summary
    assert summary["total_input_tokens"] == 125
    assert summary["total_output_tokens"] == 250


def test_sdk_error_becomes_upstream_error(mock_claude_client: ClaudeClient) -> None:
    """SDK failures surface as UpstreamError with the SDK message, after one attempt."""
    mock_claude_client._client.messages.create.side_effect = anthropic.APIConnectionError(
        message="Connection refused", request=_REQUEST
    )

    with pytest.raises(UpstreamError) as exc_info:
        mock_claude_client.generate(system="test", messages=[{"role": "user", "content": "x"}])

    assert exc_info.value.service == "llm"
    assert "Connection refused" in str(exc_info.value)
    assert mock_claude_client._client.messages.create.call_count == 1


def test_empty_response_is_upstream_error(mock_claude_client: ClaudeClient) -> None:
    """An empty completion is treated as an adapter failure."""
    mock_claude_client._client.messages.create.return_value = make_mock_response("")

    with pytest.raises(UpstreamError):
        mock_claude_client.generate(system="test", messages=[{"role": "user", "content": "x"}])


def test_retry_budget_from_settings(settings: Settings) -> None:
    """Raising llm_max_attempts lets transient errors be retried."""
    settings.llm_max_attempts = 2
    client = ClaudeClient(settings)
    client._retrying.wait = lambda retry_state: 0
    anthropic_mock = MagicMock()
    client._client = anthropic_mock
    anthropic_mock.messages.create.side_effect = [
        anthropic.APIConnectionError(message="blip", request=_REQUEST),
        make_mock_response("second time lucky"),
    ]

    assert client.generate(system="s", messages=[{"role": "user", "content": "x"}]) == "second time lucky"
    assert anthropic_mock.messages.create.call_count == 2


def test_auth_errors_are_not_retryable() -> None:
    """401s never succeed without a config change."""
    response = httpx.Response(401, request=_REQUEST)
    exc = anthropic.AuthenticationError(message="bad key", response=response, body=None)
    assert _is_retryable(exc) is False

    limited = anthropic.RateLimitError(
        message="slow down", response=httpx.Response(429, request=_REQUEST), body=None
    )
    assert _is_retryable(limited) is True


def test_render_image_prompt_template() -> None:
    """Test that Jinja2 templates render correctly."""
    rendered = render("image_prompt.j2", scene="A founder at a desk")

    assert "A founder at a desk" in rendered
    assert "16:9" in rendered
    assert "NO logos" in rendered


def test_render_requires_every_variable() -> None:
    """Missing template variables raise instead of rendering blank."""
    with pytest.raises(UndefinedError):
        render("image_prompt.j2")
