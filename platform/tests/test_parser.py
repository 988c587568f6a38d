"""Tests for draft response parsing and the fallback recovery."""

from __future__ import annotations

import pytest

from trygo.content.parser import parse_body, parse_draft, strip_json_fences
from trygo.errors import ParseError
from tests.conftest import DRAFT_JSON


def test_strict_json_with_fences() -> None:
    """Fenced JSON is parsed and sections are rendered as HTML."""
    draft = parse_draft(DRAFT_JSON, fallback_title="Solo founder onboarding")

    assert draft.title == "Onboarding alone: a founder's playbook"
    assert "<h2>Why onboarding breaks</h2>" in draft.body
    assert "<p>Most solo founders skip it.</p>" in draft.body
    # Bodies that are already HTML are kept as-is
    assert "<p>Call, record, automate.</p>" in draft.body
    assert draft.outline == "How solo founders can onboard users without a team."
    assert draft.suggested_image_prompt.startswith("A founder at a kitchen table")
    assert draft.metadata["parse_mode"] == "json"


def test_cta_block_rendered() -> None:
    """The call to action is appended after the sections."""
    draft = parse_draft(DRAFT_JSON, fallback_title="x")

    assert draft.body.index("<h2>Try it this week</h2>") > draft.body.index("A three step routine")
    assert '<a href="https://trygo.io">Start</a>' in draft.body


def test_headings_become_outline_without_summary() -> None:
    """Without a summary the outline lists the section headings."""
    text = '{"title": "T", "sections": [{"heading": "One", "body": "a"}, {"heading": "Two", "body": "b"}]}'
    draft = parse_draft(text, fallback_title="x")

    assert draft.outline == "- One\n- Two"


def test_plain_body_field() -> None:
    """A flat ``body`` field is used when there are no sections."""
    draft = parse_draft('{"body": "<p>Hi</p>", "image_prompt": "desk"}', fallback_title="Fallback")

    assert draft.title == "Fallback"
    assert draft.body == "<p>Hi</p>"
    assert draft.suggested_image_prompt == "desk"


def test_faq_list_rendered() -> None:
    """FAQ entries are rendered under an FAQ heading."""
    text = '{"body": "<p>Intro</p>", "faq": [{"question": "Why?", "answer": "Because."}]}'
    draft = parse_draft(text, fallback_title="x")

    assert "<h2>FAQ</h2>" in draft.body
    assert "<h3>Why?</h3>" in draft.body


def test_html_is_escaped_in_plain_sections() -> None:
    """Plain-text section bodies are escaped before wrapping."""
    text = '{"sections": [{"heading": "A & B", "body": "1 < 2"}]}'
    draft = parse_draft(text, fallback_title="x")

    assert "<h2>A &amp; B</h2>" in draft.body
    assert "<p>1 &lt; 2</p>" in draft.body


def test_fallback_embedded_json() -> None:
    """JSON wrapped in chatter is recovered by the fallback pass."""
    text = 'Sure! Here is your draft:\n{"title": "Recovered", "body": "<p>Body</p>"}\nEnjoy.'
    draft = parse_draft(text, fallback_title="x")

    assert draft.title == "Recovered"
    assert draft.metadata["parse_mode"] == "embedded_json"


def test_fallback_markdown() -> None:
    """Markdown with headings is recovered with its H1 as the title."""
    text = "# Solo onboarding\n\nIntro paragraph.\n\n## Step one\n\nDo the thing."
    draft = parse_draft(text, fallback_title="x")

    assert draft.title == "Solo onboarding"
    assert "## Step one" in draft.body
    assert draft.outline == "- Step one"
    assert draft.metadata["parse_mode"] == "markdown"


def test_fallback_html() -> None:
    """HTML with headings is recovered and the H1 is lifted into the title."""
    text = "<h1>Launch week</h1><p>Intro</p><h2>Plan</h2><p>Details</p>"
    draft = parse_draft(text, fallback_title="x")

    assert draft.title == "Launch week"
    assert "<h1>" not in draft.body
    assert "<h2>Plan</h2>" in draft.body
    assert draft.metadata["parse_mode"] == "html"


def test_unstructured_text_is_parse_error() -> None:
    """Prose with no structure cannot be recovered."""
    with pytest.raises(ParseError):
        parse_draft("I am sorry, I cannot help with that.", fallback_title="x")


def test_json_without_body_is_parse_error() -> None:
    """Valid JSON that carries no body is rejected."""
    with pytest.raises(ParseError):
        parse_draft('{"title": "Only a title"}', fallback_title="x")


def test_empty_response_is_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_draft("   ", fallback_title="x")


def test_strip_json_fences_passthrough() -> None:
    assert strip_json_fences('{"a": 1}') == '{"a": 1}'


def test_parse_body_accepts_prose_and_json() -> None:
    """Rewrites may come back as prose or as a JSON draft."""
    assert parse_body("<p>Rewritten</p>") == "<p>Rewritten</p>"
    assert parse_body('{"body": "<p>From JSON</p>"}') == "<p>From JSON</p>"
    with pytest.raises(ParseError):
        parse_body('{"title": "no body"}')


TRUNCATED_JSON = (
    '{"title": "X", "summary": "s", "sections": ['
    '{"heading": "A", "body": "<h2>Intro</h2><p>text</p>"}, '
    '{"heading": "B", "body": "<p>cut'
)


@pytest.mark.parametrize("text", [TRUNCATED_JSON, f"```json\n{TRUNCATED_JSON}"])
def test_truncated_json_is_parse_error(text: str) -> None:
    """Cut-off JSON is not read as HTML even when a section holds headings."""
    with pytest.raises(ParseError):
        parse_draft(text, fallback_title="Fallback")


def test_truncated_markdown_json_is_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_draft('{"title": "X", "body": "# Heading\\n## Part\\ntext', fallback_title="x")
