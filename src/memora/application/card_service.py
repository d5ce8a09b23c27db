import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime

from memora.application.card_factory import parse_raw_cards
from memora.application.queue_builder import SessionOptions, build_review_queue
from memora.application.scheduler import apply_review, validate_rating
from memora.domain.errors import CardNotFoundError
from memora.domain.models import Card, ReviewOutcome
from memora.domain.ports import CardStore


def find_card(cards: Sequence[Card], card_id: str) -> Card:
    """Return the card with the given ID or raise CardNotFoundError."""
    for card in cards:
        if card.id == card_id:
            return card
    raise CardNotFoundError(card_id)


def replace_card(cards: Sequence[Card], updated: Card) -> list[Card]:
    """Return a copy of cards with the entry sharing updated.id swapped in place."""
    out = list(cards)
    for i, card in enumerate(out):
        if card.id == updated.id:
            out[i] = updated
            return out
    raise CardNotFoundError(updated.id)


class CardService:
    """
    Load -> apply -> save orchestration on top of a CardStore.

    Each call reloads the collection so the store stays the single source of
    truth; callers that share a store across threads must serialize calls.
    """

    def __init__(self, store: CardStore):
        self.store = store
        self.logger = logging.getLogger(__name__)

    def list_cards(self) -> list[Card]:
        return self.store.load()

    def get_card(self, card_id: str) -> Card:
        return find_card(self.store.load(), card_id)

    def add_cards(self, new_cards: Sequence[Card]) -> list[Card]:
        if not new_cards:
            return []
        cards = self.store.load()
        self.store.save(cards + list(new_cards))
        self.logger.info(f"Added {len(new_cards)} card(s)")
        return list(new_cards)

    def import_raw(
        self, raw: str, tags: Iterable[str] = (), now: datetime | None = None
    ) -> list[Card]:
        return self.add_cards(parse_raw_cards(raw, tags=tags, now=now))

    def review_card(self, card_id: str, rating: int, now: datetime | None = None) -> ReviewOutcome:
        validate_rating(rating)
        cards = self.store.load()
        outcome = apply_review(find_card(cards, card_id), rating, now=now)
        self.store.save(replace_card(cards, outcome.card))
        return outcome

    def save_card(self, card: Card) -> Card:
        """Persist an already-updated card, e.g. one produced by a ReviewSession."""
        cards = self.store.load()
        self.store.save(replace_card(cards, card))
        return card

    def update_tags(self, card_id: str, tags: Iterable[str]) -> Card:
        cards = self.store.load()
        updated = find_card(cards, card_id).with_tags(t.strip() for t in tags if t.strip())
        self.store.save(replace_card(cards, updated))
        return updated

    def add_tags(self, card_id: str, tags: Iterable[str]) -> Card:
        cards = self.store.load()
        card = find_card(cards, card_id)
        updated = replace(card, tags=card.tags | {t.strip() for t in tags if t.strip()})
        self.store.save(replace_card(cards, updated))
        return updated

    def update_notes(self, card_id: str, notes: str) -> Card:
        cards = self.store.load()
        updated = find_card(cards, card_id).with_notes(notes)
        self.store.save(replace_card(cards, updated))
        return updated

    def review_queue(
        self, options: SessionOptions | None = None, now: datetime | None = None
    ) -> list[Card]:
        return build_review_queue(self.store.load(), options, now=now)
