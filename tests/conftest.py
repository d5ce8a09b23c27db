from datetime import datetime, timedelta, timezone

import pytest

from memora.domain.models import Card, ReviewMark

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_card(
    card_id: str = "c1",
    due_in_days: float = 0,
    last_rating: int | None = None,
    tags=(),
    **kwargs,
) -> Card:
    """Build a card relative to NOW. due_in_days < 0 means overdue."""
    last_review = None
    if last_rating is not None:
        last_review = ReviewMark(reviewed_at=NOW - timedelta(days=1), rating=last_rating)
        kwargs.setdefault("performance_history", (last_rating,))
    return Card(
        id=card_id,
        question=kwargs.pop("question", f"Question {card_id}?"),
        answer=kwargs.pop("answer", f"Answer {card_id}"),
        due_date=NOW + timedelta(days=due_in_days),
        last_review=last_review,
        tags=frozenset(tags),
        **kwargs,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/data
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def data_dir(tmp_path, monkeypatch, mock_home):
    """Points MEMORA_DATA_DIR at an empty temp directory."""
    d = tmp_path / "data"
    monkeypatch.setenv("MEMORA_DATA_DIR", str(d))
    return d


@pytest.fixture
def card_factory():
    return make_card
