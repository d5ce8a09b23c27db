"""
Domain models for review statistics.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass
class ReviewStats:
    """
    Aggregate statistics over a card collection.

    Attributes:
        total_cards: Number of cards in the collection.
        due_cards: Cards whose due date has arrived.
        avg_ease_factor: Mean ease factor, 0.0 for an empty collection.
        performance_distribution: Count of every rating 0-5 across all histories.
        reviews_by_day: UTC day of each card's latest review -> card count.
        upcoming_reviews: UTC due day -> card count, within the upcoming window.
    """

    total_cards: int = 0
    due_cards: int = 0
    avg_ease_factor: float = 0.0
    performance_distribution: list[int] = field(default_factory=lambda: [0] * 6)
    reviews_by_day: dict[date, int] = field(default_factory=dict)
    upcoming_reviews: dict[date, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_cards": self.total_cards,
            "due_cards": self.due_cards,
            "avg_ease_factor": self.avg_ease_factor,
            "performance_distribution": list(self.performance_distribution),
            "reviews_by_day": {d.isoformat(): n for d, n in sorted(self.reviews_by_day.items())},
            "upcoming_reviews": {
                d.isoformat(): n for d, n in sorted(self.upcoming_reviews.items())
            },
        }
