"""
Store Factory
Centralizes the construction of stores and services from configuration.
"""

from memora.application.card_service import CardService
from memora.application.config import AppConfig
from memora.application.stats.metrics_calculator import MetricsCalculator
from memora.application.stats.service import StatsService
from memora.domain.ports import CardStore
from memora.infrastructure.json_store import InterestStore, JsonCardStore


def get_card_store(config: AppConfig) -> CardStore:
    """
    Returns the CardStore implementation for the configured data directory.
    """
    return JsonCardStore(config.cards_path)


def get_card_service(config: AppConfig) -> CardService:
    return CardService(get_card_store(config))


def get_stats_service(config: AppConfig) -> StatsService:
    return StatsService(
        get_card_store(config),
        MetricsCalculator(upcoming_window_days=config.upcoming_window_days),
    )


def get_interest_store(config: AppConfig) -> InterestStore:
    return InterestStore(config.interests_path)
