"""
JSON Card Store: Infrastructure adapter for a single JSON file.

Implements CardStore. Records keep the camelCase keys (EF, dueDate, lastReview,
lastRating, performance) used by existing cards.json collections.
"""

import json
import logging
import os
import tempfile
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from memora.domain.constants import DEFAULT_EASE_FACTOR
from memora.domain.errors import StoreCorruptedError
from memora.domain.models import Card, ReviewMark, as_utc
from memora.domain.ports import CardStore

logger = logging.getLogger(__name__)


class CardRecord(BaseModel):
    """On-disk shape of one card."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    question: str
    answer: str
    ease_factor: float = Field(default=DEFAULT_EASE_FACTOR, alias="EF")
    interval: int = Field(default=0, ge=0)
    repetition: int = Field(default=0, ge=0)
    due_date: datetime = Field(alias="dueDate")
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    last_review: datetime | None = Field(default=None, alias="lastReview")
    performance: list[int] = Field(default_factory=list)
    last_rating: int | None = Field(default=None, alias="lastRating")

    @classmethod
    def from_card(cls, card: Card) -> "CardRecord":
        return cls(
            id=card.id,
            question=card.question,
            answer=card.answer,
            ease_factor=card.ease_factor,
            interval=card.interval,
            repetition=card.repetition,
            due_date=as_utc(card.due_date),
            tags=sorted(card.tags),
            notes=card.notes or None,
            last_review=as_utc(card.last_review.reviewed_at) if card.last_review else None,
            performance=list(card.performance_history),
            last_rating=card.last_review.rating if card.last_review else None,
        )

    def to_card(self) -> Card:
        return Card(
            id=self.id,
            question=self.question,
            answer=self.answer,
            due_date=as_utc(self.due_date),
            ease_factor=self.ease_factor,
            interval=self.interval,
            repetition=self.repetition,
            last_review=self._review_mark(),
            performance_history=tuple(self.performance),
            tags=frozenset(self.tags),
            notes=self.notes or "",
        )

    def _review_mark(self) -> ReviewMark | None:
        if self.last_review is None:
            return None
        rating = self.last_rating
        if rating is None and self.performance:
            rating = self.performance[-1]
        if rating is None:
            return None
        return ReviewMark(reviewed_at=as_utc(self.last_review), rating=rating)


_records = TypeAdapter(list[CardRecord])


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to a temp file beside path, then swap it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def read_json(path: Path) -> Any:
    """
    Read a JSON document.

    Returns None if the file does not exist; raises StoreCorruptedError if it
    exists but cannot be read or decoded.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StoreCorruptedError(f"Cannot read {path}: {e}") from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise StoreCorruptedError(f"{path} is not valid JSON: {e}") from e


class JsonCardStore(CardStore):
    """Stores the whole collection as a JSON list in one file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[Card]:
        data = read_json(self.path)
        if data is None:
            logger.debug(f"No card store at {self.path}, starting empty")
            return []

        try:
            records = _records.validate_python(data)
        except ValidationError as e:
            raise StoreCorruptedError(f"{self.path} holds malformed cards: {e}") from e

        return [r.to_card() for r in records]

    def save(self, cards: Sequence[Card]) -> None:
        payload = [
            CardRecord.from_card(c).model_dump(mode="json", by_alias=True, exclude_none=True)
            for c in cards
        ]
        atomic_write_text(self.path, json.dumps(payload, indent=2, ensure_ascii=False))
        logger.debug(f"Saved {len(cards)} card(s) to {self.path}")


class InterestStore:
    """The user's saved interests (tags offered as review filters)."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[str]:
        data = read_json(self.path)
        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(i, str) for i in data):
            raise StoreCorruptedError(f"{self.path} must hold a JSON list of strings")
        return data

    def save(self, interests: Sequence[str]) -> None:
        atomic_write_text(self.path, json.dumps(list(interests), indent=2, ensure_ascii=False))

    def add(self, interest: str) -> bool:
        interest = interest.strip()
        if not interest:
            return False
        interests = self.load()
        if interest in interests:
            return False
        interests.append(interest)
        self.save(interests)
        return True

    def remove(self, interest: str) -> bool:
        interests = self.load()
        if interest not in interests:
            return False
        self.save([i for i in interests if i != interest])
        return True
