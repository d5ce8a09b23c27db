"""
Ports (interfaces) for card persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from .models import Card


class CardStore(ABC):
    """
    Port for loading and saving the full card collection.

    Implementations:
        - JsonCardStore: A single JSON file replaced atomically on save.
    """

    @abstractmethod
    def load(self) -> list[Card]:
        """
        Return every stored card.

        A store that does not exist yet is treated as empty. A store that
        exists but cannot be parsed raises StoreCorruptedError.
        """
        pass

    @abstractmethod
    def save(self, cards: Sequence[Card]) -> None:
        """
        Replace the whole collection.

        Partial writes must never leave a corrupted store behind.
        """
        pass
