"""
Metrics calculator for review statistics.

This is a pure computation module with no I/O.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta

from memora.domain.constants import MAX_RATING, MIN_RATING, UPCOMING_WINDOW_DAYS
from memora.domain.models import Card, as_utc, utcnow
from memora.domain.stats.models import ReviewStats


class MetricsCalculator:
    """
    Computes aggregate statistics from a card collection.

    Stateless and side-effect free.
    """

    def __init__(self, upcoming_window_days: int = UPCOMING_WINDOW_DAYS):
        self.upcoming_window_days = upcoming_window_days

    def compute(self, cards: Sequence[Card], now: datetime | None = None) -> ReviewStats:
        now = as_utc(now) if now is not None else utcnow()
        stats = ReviewStats(
            total_cards=len(cards),
            due_cards=sum(1 for card in cards if card.is_due(now)),
            avg_ease_factor=self._average_ease(cards),
        )

        window_end = now + timedelta(days=self.upcoming_window_days)

        for card in cards:
            self._count_ratings(card, stats.performance_distribution)

            # Only the latest review of each card counts
            if card.last_review is not None:
                day = as_utc(card.last_review.reviewed_at).date()
                stats.reviews_by_day[day] = stats.reviews_by_day.get(day, 0) + 1

            due = as_utc(card.due_date)
            if now <= due <= window_end:
                stats.upcoming_reviews[due.date()] = stats.upcoming_reviews.get(due.date(), 0) + 1

        return stats

    def _average_ease(self, cards: Sequence[Card]) -> float:
        if not cards:
            return 0.0
        return sum(card.ease_factor for card in cards) / len(cards)

    def _count_ratings(self, card: Card, distribution: list[int]) -> None:
        for rating in card.performance_history:
            if MIN_RATING <= rating <= MAX_RATING:
                distribution[rating] += 1
