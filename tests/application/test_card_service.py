"""Tests for CardService orchestration and the card factory."""

import pytest

from memora.application.card_factory import generate_card_id, new_card, parse_raw_cards
from memora.application.card_service import CardService, find_card, replace_card
from memora.application.notes_markdown import (
    ensure_notes_file,
    extract_notes,
    render_notes_markdown,
)
from memora.application.queue_builder import SessionOptions
from memora.domain.errors import CardNotFoundError, InvalidRatingError
from memora.infrastructure.json_store import JsonCardStore


@pytest.fixture
def store(tmp_path):
    return JsonCardStore(tmp_path / "cards.json")


@pytest.fixture
def service(store, card_factory):
    store.save(
        [
            card_factory("a", due_in_days=-1, last_rating=5, tags=["py"]),
            card_factory("b", due_in_days=-1, last_rating=1),
            card_factory("c", due_in_days=4),
        ]
    )
    return CardService(store)


# ---------- Lookup ----------


def test_find_card(card_factory):
    cards = [card_factory("a"), card_factory("b")]

    assert find_card(cards, "b") is cards[1]
    with pytest.raises(CardNotFoundError, match="zzz"):
        find_card(cards, "zzz")


def test_replace_card_keeps_position(card_factory):
    cards = [card_factory("a"), card_factory("b"), card_factory("c")]
    updated = cards[1].with_notes("hi")

    result = replace_card(cards, updated)

    assert [c.id for c in result] == ["a", "b", "c"]
    assert result[1].notes == "hi"
    assert cards[1].notes == ""


# ---------- Review ----------


def test_review_card_persists(service, store, now):
    outcome = service.review_card("b", 5, now=now)

    assert outcome.needs_immediate_re_review is False
    saved = find_card(store.load(), "b")
    assert saved.repetition == 1
    assert saved.performance_history == (1, 5)
    assert [c.id for c in store.load()] == ["a", "b", "c"]


def test_review_unknown_card(service, now):
    with pytest.raises(CardNotFoundError):
        service.review_card("missing", 4, now=now)


def test_invalid_rating_does_not_touch_store(service, store, now):
    before = store.path.read_text()

    with pytest.raises(InvalidRatingError):
        service.review_card("a", 6, now=now)

    assert store.path.read_text() == before


def test_review_queue_prioritizes_failed(service, now):
    queue = service.review_queue(now=now)

    assert [c.id for c in queue] == ["b", "a"]


def test_review_queue_with_tags(service, now):
    queue = service.review_queue(SessionOptions.from_tags(["py"]), now=now)

    assert [c.id for c in queue] == ["a"]


# ---------- Tags and notes ----------


def test_update_tags_replaces(service, store):
    card = service.update_tags("a", ["rust", " ", "go "])

    assert card.tags == frozenset({"rust", "go"})
    assert find_card(store.load(), "a").tags == frozenset({"rust", "go"})


def test_add_tags_merges(service):
    card = service.add_tags("a", ["rust"])

    assert card.tags == frozenset({"py", "rust"})


def test_update_notes(service, store):
    service.update_notes("c", "see chapter 2")

    assert service.get_card("c").notes == "see chapter 2"


def test_tag_edit_leaves_schedule_alone(service):
    before = service.get_card("a")

    after = service.update_tags("a", ["x"])

    assert (after.due_date, after.ease_factor, after.interval) == (
        before.due_date,
        before.ease_factor,
        before.interval,
    )


# ---------- Import ----------


RAW = """Q: What is the minimum ease factor?
A: 1.3
---
Q: Interval after the second success?
A: 6 days
---
just some chatter without a pair
"""


def test_parse_raw_cards(now):
    cards = parse_raw_cards(RAW, tags=["sm2"], now=now)

    assert [c.question for c in cards] == [
        "What is the minimum ease factor?",
        "Interval after the second success?",
    ]
    assert cards[1].answer == "6 days"
    for card in cards:
        assert card.ease_factor == 2.5
        assert card.interval == 0
        assert card.repetition == 0
        assert card.due_date == now
        assert card.last_review is None
        assert card.tags == frozenset({"sm2"})
    assert cards[0].id != cards[1].id


def test_import_raw_appends(service, store, now):
    saved = service.import_raw(RAW, now=now)

    assert len(saved) == 2
    assert [c.id for c in store.load()][:3] == ["a", "b", "c"]
    assert len(store.load()) == 5


def test_import_nothing_does_not_write(tmp_path):
    store = JsonCardStore(tmp_path / "cards.json")

    assert CardService(store).import_raw("no cards here") == []
    assert not store.path.exists()


def test_new_card_is_immediately_due(now):
    card = new_card("  Q  ", " A ", now=now)

    assert card.question == "Q"
    assert card.is_due(now)


def test_generate_card_id_unique():
    assert len({generate_card_id() for _ in range(50)}) == 50


# ---------- Markdown notes ----------


def test_markdown_notes_roundtrip(tmp_path, card_factory):
    card = card_factory("a", notes="old note")

    path = ensure_notes_file(tmp_path / "md", card)
    text = path.read_text()
    assert text == render_notes_markdown(card)
    assert extract_notes(text) == "old note"

    path.write_text(text.replace("old note", "new note\nsecond line"))
    assert extract_notes(path.read_text()) == "new note\nsecond line"


def test_extract_notes_without_heading():
    assert extract_notes("# Title\n\nbody") == ""
