"""
Domain models for cards and review results.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from .constants import DEFAULT_EASE_FACTOR


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ReviewMark:
    """
    The most recent review of a card.

    A card carries one of these once it has been reviewed at least once;
    unreviewed cards carry None instead, so a missing rating can never be
    mistaken for a rating of zero.

    Attributes:
        reviewed_at: When the review happened (UTC).
        rating: Recall quality given at that review (0-5).
    """

    reviewed_at: datetime
    rating: int


@dataclass(frozen=True)
class Card:
    """
    A single question/answer unit with its SM-2 scheduling state.

    Attributes:
        id: Opaque unique identifier assigned at creation.
        question: Prompt shown to the learner.
        answer: Expected answer.
        due_date: Moment at/after which the card may be reviewed (UTC).
        ease_factor: SM-2 ease factor, never below 1.3.
        interval: Days between the last review and the due date.
        repetition: Consecutive successful reviews (rating >= 3).
        last_review: Latest review, None until the first one.
        performance_history: Every rating ever given, oldest first.
        tags: Free-form labels used for filtering.
        notes: Free-form annotation.
    """

    id: str
    question: str
    answer: str
    due_date: datetime
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetition: int = 0
    last_review: ReviewMark | None = None
    performance_history: tuple[int, ...] = ()
    tags: frozenset[str] = field(default_factory=frozenset)
    notes: str = ""

    @property
    def last_rating(self) -> int | None:
        return self.last_review.rating if self.last_review else None

    @property
    def reviewed(self) -> bool:
        return self.last_review is not None

    def is_due(self, now: datetime) -> bool:
        return as_utc(self.due_date) <= as_utc(now)

    def with_tags(self, tags) -> "Card":
        return replace(self, tags=frozenset(tags))

    def with_notes(self, notes: str) -> "Card":
        return replace(self, notes=notes)


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of applying one rating to a card."""

    card: Card
    rating: int
    needs_immediate_re_review: bool
