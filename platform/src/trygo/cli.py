"""CLI entry point for the TRYGO content pipeline."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

console = Console()

_CATEGORIES = ["pain", "goal", "trigger", "feature", "benefit", "faq", "info"]

STATUS_STYLES = {
    "pending": "dim",
    "backlog": "dim",
    "scheduled": "cyan",
    "draft": "yellow",
    "review": "magenta",
    "ready": "blue",
    "published": "green",
    "archived": "red",
}


@click.group()
@click.version_option(version="0.1.0")
def main() -> None:
    """TRYGO content pipeline: ideas, drafts, images and WordPress publishing."""
    from trygo.config import get_settings

    _configure_logging(get_settings().log_level)


def _configure_logging(level: str) -> None:
    """Route the package's log records through rich at the configured level."""
    package_logger = logging.getLogger("trygo")
    package_logger.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        package_logger.addHandler(handler)


def _get_pipeline():
    """Build the pipeline with production adapters from settings."""
    from trygo.config import get_settings
    from trygo.pipeline.service import ContentPipeline

    pipeline = ContentPipeline.from_settings(get_settings())
    click.get_current_context().call_on_close(pipeline.close)
    return pipeline


@contextmanager
def _pipeline_errors():
    """Print pipeline failures and exit non-zero."""
    from trygo.errors import PipelineError

    try:
        yield
    except PipelineError as e:
        console.print(f"[bold red]{type(e).__name__}:[/bold red] {e}")
        raise SystemExit(1) from e


def _styled(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


# ---------------------------------------------------------------------------
# ideas — backlog idea management
# ---------------------------------------------------------------------------


@main.command("add-idea")
@click.argument("project_id")
@click.argument("hypothesis_id")
@click.argument("title")
@click.option("--category", "-c", type=click.Choice(_CATEGORIES), default="info", help="Idea category")
@click.option("--description", "-d", default="", help="Short brief for the writer")
@click.option("--cluster", "cluster_id", default=None, help="Keyword cluster id")
def add_idea(
    project_id: str,
    hypothesis_id: str,
    title: str,
    category: str,
    description: str,
    cluster_id: str | None,
) -> None:
    """Create a backlog idea (always starts as pending)."""
    pipeline = _get_pipeline()
    with _pipeline_errors():
        idea = pipeline.ideas.create_idea(
            project_id, hypothesis_id, title, description, category, cluster_id
        )
    console.print(f"[green]Created idea[/green] {idea.id}: [bold]{idea.title}[/bold]")


@main.command()
@click.argument("project_id")
@click.option("--hypothesis", "-H", "hypothesis_id", default=None, help="Only this hypothesis")
def ideas(project_id: str, hypothesis_id: str | None) -> None:
    """List backlog ideas, most recently updated first."""
    pipeline = _get_pipeline()
    rows = pipeline.ideas.list_ideas(project_id, hypothesis_id)
    if not rows:
        console.print("[yellow]No ideas found.[/yellow]")
        return

    table = Table(title=f"Ideas for {project_id}")
    table.add_column("ID", width=32)
    table.add_column("Title", width=50)
    table.add_column("Category", width=9)
    table.add_column("Status", width=12)
    table.add_column("Updated", width=12)
    for idea in rows:
        table.add_row(
            idea.id,
            idea.title,
            idea.category.value,
            _styled(idea.status.value),
            idea.updated_at.strftime("%Y-%m-%d"),
        )
    console.print(table)


@main.command()
@click.argument("idea_id")
def dismiss(idea_id: str) -> None:
    """Archive a backlog idea."""
    from trygo.storage.models import IdeaStatus

    pipeline = _get_pipeline()
    with _pipeline_errors():
        idea = pipeline.ideas.update_idea_status(idea_id, IdeaStatus.ARCHIVED)
    console.print(f"Idea {idea.id} is now {_styled(idea.status.value)}")


# ---------------------------------------------------------------------------
# generate — drafts and images
# ---------------------------------------------------------------------------


@main.command()
@click.argument("idea_id")
@click.option("--project", "-p", "project_id", required=True, help="Project id")
@click.option("--hypothesis", "-H", "hypothesis_id", required=True, help="Hypothesis id")
@click.option("--image", "with_image", is_flag=True, help="Also generate a hero image")
def generate(idea_id: str, project_id: str, hypothesis_id: str, with_image: bool) -> None:
    """Generate (or replace) the draft for a backlog idea."""
    pipeline = _get_pipeline()
    with _pipeline_errors(), console.status("[bold green]Generating draft..."):
        item = pipeline.generate_content_for_idea(
            idea_id, project_id, hypothesis_id, with_image=with_image
        )

    console.print()
    console.print(
        Panel(
            f"[bold]{item.title}",
            subtitle=f"{item.format.value} | {len((item.content or '').split())} words | "
            f"{'image' if item.image_url else 'no image'}",
        )
    )
    if item.outline:
        console.print(item.outline)
    console.print(f"\n[dim]Content item {item.id} is {item.status.value}[/dim]")


@main.command()
@click.argument("item_id")
@click.option("--prompt", "-P", "prompt_part", default=None, help="Rewrite instruction")
def regenerate(item_id: str, prompt_part: str | None) -> None:
    """Rewrite the body of a content item. Title and status are kept."""
    pipeline = _get_pipeline()
    with _pipeline_errors(), console.status("[bold green]Rewriting..."):
        item = pipeline.regenerate_content(item_id, prompt_part)
    console.print(
        f"[green]Regenerated[/green] {item.id} ({len((item.content or '').split())} words)"
    )


@main.command()
@click.argument("item_id")
@click.option("--prompt", "-P", "prompt_hint", default=None, help="Scene description override")
def image(item_id: str, prompt_hint: str | None) -> None:
    """Generate a hero image for a content item."""
    pipeline = _get_pipeline()
    with _pipeline_errors(), console.status("[bold green]Generating image..."):
        item = pipeline.attach_image(item_id, prompt_hint=prompt_hint)
    if item.image_url:
        console.print(f"[green]Image attached to[/green] {item.id}")
    else:
        console.print(f"[yellow]No image generated for {item.id}; see log for details.[/yellow]")


# ---------------------------------------------------------------------------
# status — review, ready, unpublish
# ---------------------------------------------------------------------------


@main.command()
@click.argument("item_id")
def review(item_id: str) -> None:
    """Move a draft to review."""
    pipeline = _get_pipeline()
    with _pipeline_errors():
        item = pipeline.move_to_review(item_id)
    console.print(f"Content item {item.id} is now {_styled(item.status.value)}")


@main.command()
@click.argument("item_id")
def ready(item_id: str) -> None:
    """Mark a content item ready to publish."""
    pipeline = _get_pipeline()
    with _pipeline_errors():
        item = pipeline.mark_ready(item_id)
    console.print(f"Content item {item.id} is now {_styled(item.status.value)}")


@main.command()
@click.argument("item_id")
@click.option(
    "--to",
    "return_to",
    type=click.Choice(["pending", "backlog"]),
    default="backlog",
    help="Status the linked idea returns to",
)
def unpublish(item_id: str, return_to: str) -> None:
    """Roll a published item back to ready (the WordPress post is not touched)."""
    from trygo.storage.models import IdeaStatus

    pipeline = _get_pipeline()
    with _pipeline_errors():
        item = pipeline.unpublish(item_id, IdeaStatus(return_to))
    console.print(f"Content item {item.id} is now {_styled(item.status.value)}")


# ---------------------------------------------------------------------------
# publish — WordPress
# ---------------------------------------------------------------------------


@main.command()
@click.argument("item_id")
@click.option("--project", "-p", "project_id", required=True, help="Project id")
@click.option("--hypothesis", "-H", "hypothesis_id", default=None, help="Hypothesis id")
@click.option("--date", "publish_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Publish date (YYYY-MM-DD); future dates are scheduled")
@click.option("--allow-override", is_flag=True, help="Allow a publish date another item holds")
def publish(
    item_id: str,
    project_id: str,
    hypothesis_id: str | None,
    publish_date: datetime | None,
    allow_override: bool,
) -> None:
    """Publish a content item to WordPress."""
    pipeline = _get_pipeline()
    with _pipeline_errors(), console.status("[bold green]Publishing..."):
        result = pipeline.publish(
            item_id,
            project_id,
            hypothesis_id,
            publish_date=publish_date.date() if publish_date else None,
            allow_override=allow_override,
        )
    console.print(
        f"[green]Published:[/green] post {result.word_press_post_id} "
        f"-> {result.word_press_post_url}"
    )


# ---------------------------------------------------------------------------
# inspect — items, show, reconcile
# ---------------------------------------------------------------------------


@main.command()
@click.argument("project_id")
@click.option("--hypothesis", "-H", "hypothesis_id", default=None, help="Only this hypothesis")
def items(project_id: str, hypothesis_id: str | None) -> None:
    """List content items."""
    pipeline = _get_pipeline()
    rows = pipeline.items.list_content_items(project_id, hypothesis_id)
    if not rows:
        console.print("[yellow]No content items found.[/yellow]")
        return

    table = Table(title=f"Content items for {project_id}")
    table.add_column("ID", width=32)
    table.add_column("Title", width=50)
    table.add_column("Format", width=10)
    table.add_column("Status", width=10)
    table.add_column("Publish date", width=12)
    for item in rows:
        table.add_row(
            item.id,
            item.title,
            item.format.value,
            _styled(item.status.value),
            item.publish_date.isoformat() if item.publish_date else "",
        )
    console.print(table)


@main.command()
@click.argument("item_id")
def show(item_id: str) -> None:
    """Show one content item."""
    pipeline = _get_pipeline()
    with _pipeline_errors():
        item = pipeline.items.get_content_item(item_id)

    console.print(
        Panel(
            f"[bold]{item.title}[/bold]\n"
            f"{item.category.value} / {item.format.value} / {_styled(item.status.value)}\n"
            f"Idea: {item.backlog_idea_id or '-'}  Publish date: {item.publish_date or '-'}",
            subtitle=item.id,
        )
    )
    if item.outline:
        console.print(Panel(item.outline, title="Outline"))
    console.print(item.content or "[dim](no content yet)[/dim]")


@main.command()
@click.argument("project_id")
@click.argument("hypothesis_id")
def reconcile(project_id: str, hypothesis_id: str) -> None:
    """Report idea/item drift in one scope. Read-only."""
    from trygo.config import get_settings
    from trygo.pipeline.reconcile import reconcile as run_reconcile

    report = run_reconcile(get_settings().db_path, project_id, hypothesis_id)
    if report.is_clean:
        console.print("[green]No inconsistencies found.[/green]")
        return

    table = Table(title=f"Reconciliation: {project_id}/{hypothesis_id}")
    table.add_column("Issue", width=22)
    table.add_column("Details", width=80)
    for item_id in report.orphaned_items:
        table.add_row("orphaned item", f"{item_id} references a missing idea")
    for idea_id, item_ids in report.duplicate_live_items.items():
        table.add_row("duplicate live items", f"idea {idea_id}: {', '.join(item_ids)}")
    for idea_id, idea_status, item_id, item_status in report.inconsistent_pairs:
        table.add_row(
            "status drift", f"idea {idea_id} {idea_status} / item {item_id} {item_status}"
        )
    for day, item_ids in report.duplicate_publish_dates.items():
        table.add_row("duplicate publish date", f"{day.isoformat()}: {', '.join(item_ids)}")
    console.print(table)
    raise SystemExit(1)


if __name__ == "__main__":
    main()
