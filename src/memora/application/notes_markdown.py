"""Editing card notes through a markdown file."""

import re
from pathlib import Path

from memora.domain.models import Card

NOTES_HEADING = "## Notes:"
_NOTES_SECTION = re.compile(r"^## Notes:\s*\n(.*)", re.IGNORECASE | re.MULTILINE | re.DOTALL)


def notes_path(markdown_dir: Path, card: Card) -> Path:
    return markdown_dir / f"{card.id}.md"


def render_notes_markdown(card: Card) -> str:
    body = f"{card.notes}\n" if card.notes else ""
    return f"# {card.question}\n\n{card.answer}\n\n{NOTES_HEADING}\n\n{body}"


def ensure_notes_file(markdown_dir: Path, card: Card) -> Path:
    """Create the card's markdown file if missing and return its path."""
    path = notes_path(markdown_dir, card)
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_notes_markdown(card), encoding="utf-8")
    return path


def extract_notes(markdown: str) -> str:
    """Everything after the ``## Notes:`` heading, stripped; empty if absent."""
    m = _NOTES_SECTION.search(markdown)
    return m.group(1).strip() if m else ""
