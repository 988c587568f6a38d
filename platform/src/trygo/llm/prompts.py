"""Jinja2-based prompt template loading and rendering."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

_TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


def _bullets(items: object, fallback: str = "") -> str:
    """Render a list of strings as ``- item`` lines, skipping blanks."""
    if not isinstance(items, (list, tuple)):
        return fallback
    lines = [f"- {item.strip()}" for item in items if isinstance(item, str) and item.strip()]
    return "\n".join(lines) if lines else fallback


_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)
_env.filters["bullets"] = _bullets


def render(template_name: str, **context: object) -> str:
    """Render a prompt template with the given context variables.

    Missing variables raise instead of rendering as empty strings.
    """
    template = _env.get_template(template_name)
    return template.render(**context).strip()
