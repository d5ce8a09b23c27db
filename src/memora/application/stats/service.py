"""
Stats Service: Application layer orchestrator.

Coordinates loading cards from the store and aggregating them.
"""

import logging
from datetime import datetime

from memora.domain.ports import CardStore
from memora.domain.stats.models import ReviewStats

from .metrics_calculator import MetricsCalculator

logger = logging.getLogger(__name__)


class StatsService:
    """
    Application service for collection statistics.

    Depends on the CardStore abstraction, not on a concrete adapter.
    """

    def __init__(self, store: CardStore, calculator: MetricsCalculator | None = None):
        """
        Args:
            store: The store (port) cards are loaded from.
            calculator: Optional custom calculator; uses default if not provided.
        """
        self._store = store
        self._calc = calculator or MetricsCalculator()

    def get_stats(self, now: datetime | None = None) -> ReviewStats:
        cards = self._store.load()
        stats = self._calc.compute(cards, now=now)
        logger.debug(f"Stats: {stats.total_cards} cards, {stats.due_cards} due")
        return stats
