"""Plain-text rendering of cards and statistics."""

from datetime import datetime

from memora.domain.models import Card
from memora.domain.stats.models import ReviewStats

BAR_WIDTH = 40
BAR_CHAR = "█"


def truncate(text: str, width: int = 50) -> str:
    return text if len(text) <= width else text[:width] + "..."


def format_day(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def bar(value: int, max_value: int, width: int = BAR_WIDTH) -> str:
    scale = width / (max_value or 1)
    return BAR_CHAR * round(value * scale)


def card_line(card: Card) -> str:
    rating = "-" if card.last_rating is None else str(card.last_rating)
    tags = f" [{', '.join(sorted(card.tags))}]" if card.tags else ""
    return (
        f"{card.id}  due {format_day(card.due_date)}  EF {card.ease_factor:.2f}  "
        f"last {rating}  {truncate(card.question)}{tags}"
    )


def card_to_dict(card: Card) -> dict:
    return {
        "id": card.id,
        "question": card.question,
        "answer": card.answer,
        "ease_factor": card.ease_factor,
        "interval": card.interval,
        "repetition": card.repetition,
        "due_date": card.due_date.isoformat(),
        "last_review": card.last_review.reviewed_at.isoformat() if card.last_review else None,
        "last_rating": card.last_rating,
        "performance_history": list(card.performance_history),
        "tags": sorted(card.tags),
        "notes": card.notes,
    }


def stats_lines(stats: ReviewStats) -> list[str]:
    lines = [
        "===== Memora Statistics =====",
        f"Total cards: {stats.total_cards}",
        f"Cards due for review: {stats.due_cards}",
        f"Average ease factor: {stats.avg_ease_factor:.2f}",
        "",
        "Performance Distribution:",
    ]
    peak = max(stats.performance_distribution)
    for rating, count in enumerate(stats.performance_distribution):
        lines.append(f"Rating {rating}: {bar(count, peak)} ({count})")

    lines += ["", "Upcoming Reviews:"]
    if not stats.upcoming_reviews:
        lines.append("No upcoming reviews scheduled.")
    else:
        peak = max(stats.upcoming_reviews.values())
        for day, count in sorted(stats.upcoming_reviews.items()):
            lines.append(f"{day.month:>2}/{day.day:<2} {bar(count, peak)} ({count})")
    return lines
