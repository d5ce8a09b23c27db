"""Memora CLI: root commands and subgroup registration."""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Annotated

import typer

from memora.application.config import resolve_config
from memora.application.factory import (
    get_card_service,
    get_interest_store,
    get_stats_service,
)
from memora.application.queue_builder import SessionOptions
from memora.application.session import ReviewSession, ReviewState
from memora.domain.errors import InvalidRatingError
from memora.interface._common import _resolve_with_overrides, reported_errors
from memora.interface.render import card_line, card_to_dict, format_day, stats_lines

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="memora: SM-2 spaced repetition for your flashcards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

config_app = typer.Typer(help="Manage memora configuration.")
app.add_typer(config_app, name="config")

interests_app = typer.Typer(help="Manage the interests offered as review filters.")
app.add_typer(interests_app, name="interests")

RATING_CHOICES = [
    "0 - Complete blackout",
    "1 - Wrong answer, but recognized",
    "2 - Wrong answer, but close",
    "3 - Correct with difficulty",
    "4 - Correct with some hesitation",
    "5 - Perfect recall",
]

TagOption = Annotated[
    list[str] | None,
    typer.Option("--tag", "-t", help="Only include cards with this tag. Repeatable."),
]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    data_dir: Annotated[
        Path | None, typer.Option(help="Directory holding cards.json and interests.json.")
    ] = None,
):
    """Global settings for memora."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose
    ctx.obj["data_dir"] = data_dir


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    tag: TagOption = None,
    no_priority: Annotated[
        bool, typer.Option("--no-priority", help="Keep store order instead of failed-first.")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List the cards due for review, in review order."""
    config = _resolve_with_overrides(ctx)
    options = SessionOptions.from_tags(
        tag, include_failed_priority=config.include_failed_priority and not no_priority
    )

    with reported_errors():
        queue = get_card_service(config).review_queue(options)

    if json_output:
        typer.echo(json.dumps([card_to_dict(c) for c in queue], indent=2))
        return

    if not queue:
        typer.secho("No cards due for review. Great job!", fg="green")
        return
    typer.echo(f"{len(queue)} card(s) due for review:")
    for card in queue:
        typer.echo(f"  {card_line(card)}")


@app.command()
def review(
    ctx: typer.Context,
    tag: TagOption = None,
    interests: Annotated[
        bool, typer.Option("--interests", help="Filter by your saved interests.")
    ] = False,
    no_priority: Annotated[
        bool, typer.Option("--no-priority", help="Keep store order instead of failed-first.")
    ] = False,
):
    """[bold green]Review[/bold green] due cards interactively.

    Cards rated below 4 are shown again straight away until you rate them 4 or 5.
    """
    config = _resolve_with_overrides(ctx)
    service = get_card_service(config)

    with reported_errors():
        tags = list(tag or [])
        if interests:
            tags += get_interest_store(config).load()
        options = SessionOptions.from_tags(
            tags, include_failed_priority=config.include_failed_priority and not no_priority
        )
        queue = service.review_queue(options)

    if not queue:
        if tags:
            typer.secho("No due cards match your filter criteria.", fg="yellow")
        else:
            typer.secho("No cards due for review. Great job!", fg="green")
        return

    typer.echo(f"Reviewing {len(queue)} card(s)...")
    session = ReviewSession(queue)

    with reported_errors():
        while session.current is not None:
            card = session.current
            typer.echo("\n-----------------------------------")
            if session.state == ReviewState.REQUEUED:
                typer.secho("Re-review", fg="yellow")
            typer.echo(f"Question: {card.question}")
            typer.prompt("Press Enter to show answer", default="", show_default=False)
            typer.echo(f"Answer: {card.answer}")
            if card.notes:
                typer.echo(f"Notes: {card.notes}")

            outcome = _prompt_rating(session)
            service.save_card(outcome.card)
            typer.echo(f"Next review: {format_day(outcome.card.due_date)}")
            if outcome.needs_immediate_re_review:
                typer.secho("This card needs immediate re-review (rating < 4)", fg="yellow")

    typer.secho(
        f"\nReview session complete! {len(session.outcomes)} review(s) "
        f"over {len(session.attempts)} card(s).",
        fg="green",
    )


def _prompt_rating(session: ReviewSession):
    typer.echo("\n".join(RATING_CHOICES))
    while True:
        rating = typer.prompt("How well did you remember this? (0-5)", type=int)
        try:
            return session.rate(rating)
        except InvalidRatingError as e:
            typer.secho(str(e), fg="red")


@app.command("import")
def import_cards(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Text file with Q:/A: blocks separated by ---.")],
    tag: TagOption = None,
):
    """Import generated flashcards from a Q:/A: text file."""
    config = _resolve_with_overrides(ctx)
    if not path.exists():
        typer.secho(f"File not found: {path}", fg="red", err=True)
        raise typer.Exit(1)

    with reported_errors():
        raw = path.read_text(encoding="utf-8")
        saved = get_card_service(config).import_raw(raw, tags=tag or ())

    if not saved:
        typer.secho("No Q:/A: pairs found.", fg="yellow")
        return
    typer.secho(f"{len(saved)} flashcard(s) saved to {config.cards_path}", fg="green")


@app.command()
def tag(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card ID.")],
    tags: Annotated[list[str], typer.Argument(help="Tags to set.")],
    add: Annotated[
        bool, typer.Option("--add", help="Add to the existing tags instead of replacing them.")
    ] = False,
    remember: Annotated[
        bool, typer.Option("--remember", help="Also save the tags as interests.")
    ] = False,
):
    """Set the tags of a card."""
    config = _resolve_with_overrides(ctx)
    service = get_card_service(config)

    with reported_errors():
        card = service.add_tags(card_id, tags) if add else service.update_tags(card_id, tags)
        if remember:
            store = get_interest_store(config)
            for t in tags:
                store.add(t)

    typer.secho(f"Updated tags for card: {', '.join(sorted(card.tags)) or '(none)'}", fg="green")


@app.command()
def note(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card ID.")],
    text: Annotated[
        str | None, typer.Argument(help="New notes. Omit to open an editor.")
    ] = None,
    markdown: Annotated[
        bool, typer.Option("--markdown", help="Edit the notes through a markdown file.")
    ] = False,
):
    """Add or update the notes of a card."""
    from memora.application.notes_markdown import ensure_notes_file, extract_notes

    config = _resolve_with_overrides(ctx)
    service = get_card_service(config)

    with reported_errors():
        card = service.get_card(card_id)

        if markdown:
            path = ensure_notes_file(config.markdown_dir, card)
            typer.echo(f"Markdown file: {path}")
            typer.prompt(
                "Press Enter when you have finished editing the file",
                default="",
                show_default=False,
            )
            notes = extract_notes(path.read_text(encoding="utf-8"))
        elif text is not None:
            notes = text
        else:
            edited = typer.edit(card.notes)
            if edited is None:
                typer.secho("Notes unchanged.", fg="yellow")
                return
            notes = edited.strip()

        service.update_notes(card_id, notes)

    typer.secho("Notes updated successfully.", fg="green")


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show collection statistics."""
    config = _resolve_with_overrides(ctx)

    with reported_errors():
        result = get_stats_service(config).get_stats()

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo("\n".join(stats_lines(result)))


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8777,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the local HTTP API."""
    import uvicorn

    config = _resolve_with_overrides(ctx)
    # memora.server resolves its config from the environment on every request
    os.environ["MEMORA_DATA_DIR"] = str(config.data_dir)
    logger.info(f"Serving cards from {config.cards_path}")
    uvicorn.run("memora.server:app", host=host, port=port, reload=reload)


@app.command()
def logs(ctx: typer.Context):
    """Open the log directory."""
    import subprocess

    config = _resolve_with_overrides(ctx)
    config.log_dir.mkdir(parents=True, exist_ok=True)

    if sys.platform == "darwin":
        subprocess.run(["open", str(config.log_dir)])
    elif sys.platform == "win32":
        os.startfile(str(config.log_dir))
    else:
        subprocess.run(["xdg-open", str(config.log_dir)])


# ---------------------------------------------------------------------------
# Interests subgroup
# ---------------------------------------------------------------------------


@interests_app.command("list")
def interests_list(ctx: typer.Context):
    """Show your saved interests."""
    config = _resolve_with_overrides(ctx)
    with reported_errors():
        saved = get_interest_store(config).load()

    if not saved:
        typer.secho("No interests defined yet.", fg="yellow")
        return
    for i, interest in enumerate(saved, start=1):
        typer.echo(f"{i}. {interest}")


@interests_app.command("add")
def interests_add(
    ctx: typer.Context,
    interest: Annotated[str, typer.Argument(help="Interest/tag to add.")],
):
    """Add an interest."""
    if not interest.strip():
        typer.secho("Interest cannot be empty", fg="red", err=True)
        raise typer.Exit(1)

    config = _resolve_with_overrides(ctx)
    with reported_errors():
        added = get_interest_store(config).add(interest)

    if added:
        typer.secho(f'Added "{interest.strip()}" to your interests.', fg="green")
    else:
        typer.secho(f'"{interest.strip()}" is already in your interests.', fg="yellow")


@interests_app.command("remove")
def interests_remove(
    ctx: typer.Context,
    interest: Annotated[str, typer.Argument(help="Interest/tag to remove.")],
):
    """Remove an interest."""
    config = _resolve_with_overrides(ctx)
    with reported_errors():
        removed = get_interest_store(config).remove(interest)

    if removed:
        typer.secho(f'Removed "{interest}" from your interests.', fg="green")
    else:
        typer.secho(f'"{interest}" is not in your interests.', fg="yellow")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    with reported_errors():
        config = resolve_config({"data_dir": (ctx.obj or {}).get("data_dir")})
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
