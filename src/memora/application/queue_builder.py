"""
Queue builder for review sessions.

Builds ordered review queues by:
1. Keeping only cards that are due
2. Narrowing to the session's tags, if any
3. Moving recently failed and marginal cards to the front
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from memora.domain.constants import FAILED_PRIORITY_MAX_RATING, MARGINAL_RATING
from memora.domain.models import Card, as_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionOptions:
    """
    Options for a single review session.

    An empty tag set means no tag filtering.
    """

    tags: frozenset[str] = field(default_factory=frozenset)
    include_failed_priority: bool = True

    @classmethod
    def from_tags(cls, tags: Iterable[str] | None, include_failed_priority: bool = True):
        return cls(tags=frozenset(tags or ()), include_failed_priority=include_failed_priority)


def _priority_tier(card: Card) -> int:
    rating = card.last_rating
    if rating is None:
        return 2
    if rating <= FAILED_PRIORITY_MAX_RATING:
        return 0
    if rating == MARGINAL_RATING:
        return 1
    return 2


def prioritize(cards: Sequence[Card]) -> list[Card]:
    """
    Order cards failed-first: last rating <= 2, then exactly 3, then the rest.

    Relative input order is preserved inside each tier.
    """
    tiers: list[list[Card]] = [[], [], []]
    for card in cards:
        tiers[_priority_tier(card)].append(card)
    return tiers[0] + tiers[1] + tiers[2]


def select_due(
    cards: Sequence[Card],
    now: datetime | None = None,
    include_failed_priority: bool = True,
) -> list[Card]:
    """
    Return the cards whose due date has arrived.

    Args:
        cards: Candidate cards, in store order.
        now: Reference time; defaults to the current UTC time.
        include_failed_priority: Put failed and marginal cards first.
            Otherwise due cards keep their store order.
    """
    now = as_utc(now) if now is not None else utcnow()
    due = [card for card in cards if card.is_due(now)]
    if include_failed_priority:
        return prioritize(due)
    return due


def select_by_tags(cards: Sequence[Card], tags: Iterable[str] | None) -> list[Card]:
    """
    Return cards carrying at least one of the given tags.

    An empty or missing tag set returns every card unchanged.
    """
    wanted = frozenset(tags or ())
    if not wanted:
        return list(cards)
    return [card for card in cards if card.tags & wanted]


def build_review_queue(
    cards: Sequence[Card],
    options: SessionOptions | None = None,
    now: datetime | None = None,
) -> list[Card]:
    """
    Build the queue for a review session.

    Filters by due date first, then by tags, then prioritizes, so tagged and
    untagged sessions order cards the same way.
    """
    options = options or SessionOptions()
    due = select_due(cards, now=now, include_failed_priority=False)
    scoped = select_by_tags(due, options.tags)
    queue = prioritize(scoped) if options.include_failed_priority else scoped

    logger.debug(
        f"Queue: {len(queue)} of {len(cards)} cards "
        f"(due={len(due)}, tags={sorted(options.tags) or 'any'})"
    )
    return queue
