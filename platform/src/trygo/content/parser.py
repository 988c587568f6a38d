"""Turn LLM draft responses into GeneratedDraft objects.

Strict JSON is tried first. If that fails, one lenient structural recovery
runs: an embedded JSON object, then headings extracted from Markdown or
HTML. Anything that still has no body is rejected so that nothing partial
is ever persisted.
"""

from __future__ import annotations

import json
import logging
import re
from html import escape

from bs4 import BeautifulSoup

from trygo.content.base import GeneratedDraft
from trygo.errors import ParseError

logger = logging.getLogger(__name__)

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_MD_H1_RE = re.compile(r"^#\s+(.+?)\s*#*\s*$")
_MD_H2_RE = re.compile(r"^##\s+(.+?)\s*#*\s*$")


def strip_json_fences(text: str) -> str:
    """Strip a surrounding markdown code fence, if any."""
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def _as_html_block(text: str) -> str:
    text = text.strip()
    return text if text.startswith("<") else f"<p>{escape(text)}</p>"


def _render_sections(sections: list) -> tuple[str, list[str]]:
    """Render ``[{heading, body}]`` into HTML; also return the headings."""
    parts: list[str] = []
    headings: list[str] = []
    for section in sections:
        if not isinstance(section, dict):
            continue
        heading = str(section.get("heading") or "").strip()
        body = str(section.get("body") or "").strip()
        if heading:
            headings.append(heading)
            parts.append(f"<h2>{escape(heading)}</h2>")
        if body:
            parts.append(_as_html_block(body))
    return "\n\n".join(parts), headings


def _render_cta(cta: object) -> str:
    if not isinstance(cta, dict) or not cta.get("headline"):
        return ""
    parts = [f"<h2>{escape(str(cta['headline']))}</h2>"]
    if cta.get("body"):
        parts.append(_as_html_block(str(cta["body"])))
    url = str(cta.get("url_hint") or cta.get("url") or "")
    label = cta.get("buttonLabel")
    if url and label:
        href = url if url.startswith("http") else "#"
        parts.append(f'<p><a href="{escape(href)}">{escape(str(label))}</a></p>')
    return "\n\n".join(parts)


def _render_faq(items: object) -> str:
    if not isinstance(items, list):
        return ""
    parts = []
    for item in items:
        if isinstance(item, dict) and item.get("question") and item.get("answer"):
            parts.append(f"<h3>{escape(str(item['question']))}</h3>")
            parts.append(_as_html_block(str(item["answer"])))
    return "\n\n".join(["<h2>FAQ</h2>", *parts]) if parts else ""


def draft_from_json(data: dict, fallback_title: str) -> GeneratedDraft:
    """Build a draft from a decoded JSON object (may have an empty body)."""
    title = str(data.get("title") or fallback_title).strip()
    summary = str(data.get("summary") or "").strip()
    headings: list[str] = []

    sections = data.get("sections", data.get("outline"))
    if isinstance(sections, list):
        body, headings = _render_sections(sections)
        if summary and body:
            body = f"{_as_html_block(summary)}\n\n{body}"
    else:
        body = str(data.get("body") or data.get("content") or "").strip()

    faq = _render_faq(data.get("faq"))
    if body and faq:
        body = f"{body}\n\n{faq}"

    cta = _render_cta(data.get("cta"))
    if body and cta:
        body = f"{body}\n\n{cta}"

    if isinstance(sections, str) and sections.strip():
        outline = sections.strip()
    else:
        outline = summary or "\n".join(f"- {h}" for h in headings)

    image_prompt = (
        data.get("suggestedImagePrompt") or data.get("imagePrompt") or data.get("image_prompt")
    )
    return GeneratedDraft(
        title=title,
        body=body,
        outline=outline,
        suggested_image_prompt=str(image_prompt).strip() if image_prompt else None,
        metadata={"parse_mode": "json"},
    )


def _recover_embedded_json(text: str, fallback_title: str) -> GeneratedDraft | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    draft = draft_from_json(data, fallback_title)
    draft.metadata["parse_mode"] = "embedded_json"
    return draft


def _recover_markdown(text: str, fallback_title: str) -> GeneratedDraft | None:
    lines = text.splitlines()
    title = fallback_title
    body_lines: list[str] = []
    headings: list[str] = []
    for line in lines:
        h1 = _MD_H1_RE.match(line)
        if h1 and title == fallback_title and not body_lines:
            title = h1.group(1)
            continue
        h2 = _MD_H2_RE.match(line)
        if h2:
            headings.append(h2.group(1))
        body_lines.append(line)

    if title == fallback_title and not headings:
        return None
    return GeneratedDraft(
        title=title,
        body="\n".join(body_lines).strip(),
        outline="\n".join(f"- {h}" for h in headings),
        metadata={"parse_mode": "markdown"},
    )


def _recover_html(text: str, fallback_title: str) -> GeneratedDraft | None:
    if "<h1" not in text and "<h2" not in text:
        return None
    soup = BeautifulSoup(text, "html.parser")
    title = fallback_title
    h1 = soup.find("h1")
    if h1 is not None:
        title = h1.get_text(strip=True) or fallback_title
        h1.decompose()
    headings = [h.get_text(strip=True) for h in soup.find_all("h2")]
    return GeneratedDraft(
        title=title,
        body=str(soup).strip(),
        outline="\n".join(f"- {h}" for h in headings if h),
        metadata={"parse_mode": "html"},
    )


_OPEN_FENCE_RE = re.compile(r"^```(?:json)?\s*")


def _is_json_shaped(text: str) -> bool:
    # An unclosed fence still counts; truncation usually drops the closing one
    text = _OPEN_FENCE_RE.sub("", strip_json_fences(text).lstrip())
    return text.lstrip().startswith(("{", "["))


def recover_from_text(text: str, fallback_title: str) -> GeneratedDraft | None:
    """Lenient structural extraction from a non-JSON response.

    Broken JSON (usually a truncated response) is never read as HTML or
    Markdown, since the raw object text would end up as the body.
    """
    strategies = [_recover_embedded_json]
    if not _is_json_shaped(text):
        strategies += [_recover_html, _recover_markdown]
    for strategy in strategies:
        draft = strategy(text, fallback_title)
        if draft is not None and draft.body:
            return draft
    return None


def parse_draft(text: str, fallback_title: str) -> GeneratedDraft:
    """Parse an LLM response into a draft, or raise ParseError."""
    text = (text or "").strip()
    if not text:
        raise ParseError("LLM response was empty")

    try:
        data = json.loads(strip_json_fences(text))
    except json.JSONDecodeError:
        logger.warning("Draft response is not valid JSON, attempting structural recovery")
        draft = recover_from_text(text, fallback_title)
        if draft is None:
            raise ParseError("Could not extract a draft from the LLM response") from None
        return draft

    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}")
    draft = draft_from_json(data, fallback_title)
    if not draft.body:
        raise ParseError("LLM response contained no article body")
    return draft


def parse_body(text: str) -> str:
    """Extract just the article body from a regeneration response."""
    text = (text or "").strip()
    if not text:
        raise ParseError("LLM response was empty")
    try:
        data = json.loads(strip_json_fences(text))
    except json.JSONDecodeError:
        # Plain prose is the expected shape for a rewrite
        return text
    if isinstance(data, dict):
        body = draft_from_json(data, "").body
        if body:
            return body
    raise ParseError("LLM response contained no article body")
