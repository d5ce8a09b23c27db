"""Creation of new cards and parsing of raw Q/A blocks."""

import logging
import re
from collections.abc import Iterable
from datetime import datetime

from ulid import ULID

from memora.domain.models import Card, as_utc, utcnow

logger = logging.getLogger(__name__)

_BLOCK_SEPARATOR = re.compile(r"^\s*---\s*$", re.MULTILINE)
_QUESTION = re.compile(r"^\s*Q:\s*(.+)$", re.MULTILINE)
_ANSWER = re.compile(r"^\s*A:\s*(.+)$", re.MULTILINE)


def generate_card_id() -> str:
    """Generate a stable card ID using ULID."""
    return str(ULID())


def new_card(
    question: str,
    answer: str,
    tags: Iterable[str] = (),
    notes: str = "",
    now: datetime | None = None,
) -> Card:
    """
    Create an unreviewed card, due immediately.

    EF starts at 2.5, interval and repetition at 0.
    """
    now = as_utc(now) if now is not None else utcnow()
    return Card(
        id=generate_card_id(),
        question=question.strip(),
        answer=answer.strip(),
        due_date=now,
        tags=frozenset(tags),
        notes=notes,
    )


def parse_raw_cards(
    raw: str,
    tags: Iterable[str] = (),
    now: datetime | None = None,
) -> list[Card]:
    """
    Parse generator output into new cards.

    Blocks are separated by lines holding only ``---``; each block needs a
    ``Q:`` line and an ``A:`` line. Blocks missing either are skipped.
    """
    tags = frozenset(tags)
    cards: list[Card] = []
    skipped = 0

    for block in _BLOCK_SEPARATOR.split(raw):
        q = _QUESTION.search(block)
        a = _ANSWER.search(block)
        if not q or not a:
            if block.strip():
                skipped += 1
            continue
        cards.append(new_card(q.group(1), a.group(1), tags=tags, now=now))

    if skipped:
        logger.warning(f"Skipped {skipped} block(s) without a Q:/A: pair")
    return cards
