"""
SM-2 review scheduling.

This is a pure computation module with no I/O: a card and a rating go in,
an updated card comes out.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta

from memora.domain.constants import (
    ACCEPTABLE_RATING,
    FAILED_INTERVAL,
    FIRST_SUCCESS_INTERVAL,
    MAX_RATING,
    MIN_EASE_FACTOR,
    MIN_RATING,
    PASSING_RATING,
    SECOND_SUCCESS_INTERVAL,
)
from memora.domain.errors import InvalidRatingError
from memora.domain.models import Card, ReviewMark, ReviewOutcome, as_utc, utcnow

logger = logging.getLogger(__name__)


def validate_rating(rating: object) -> int:
    """Return the rating unchanged or raise InvalidRatingError."""
    # bool is an int subclass; True/False are not ratings
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRatingError(rating)
    if rating < MIN_RATING or rating > MAX_RATING:
        raise InvalidRatingError(rating)
    return rating


def next_ease_factor(ease_factor: float, rating: int) -> float:
    """
    Standard SM-2 ease update, floored at 1.3.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    """
    miss = MAX_RATING - rating
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def next_interval(repetition: int, previous_interval: int, ease_factor: float) -> int:
    """
    Interval for a successful review.

    Args:
        repetition: Repetition count after the increment.
        previous_interval: Interval before this review.
        ease_factor: Ease factor after this review's update.
    """
    if repetition == 1:
        return FIRST_SUCCESS_INTERVAL
    if repetition == 2:
        return SECOND_SUCCESS_INTERVAL
    return round_half_up(previous_interval * ease_factor)


def apply_review(card: Card, rating: int, now: datetime | None = None) -> ReviewOutcome:
    """
    Apply one rating to a card using the SM-2 rules.

    Args:
        card: The card being reviewed. It is not modified.
        rating: Recall quality, an integer from 0 to 5.
        now: Review time; defaults to the current UTC time.

    Returns:
        ReviewOutcome with the updated card and whether it must be shown again
        in the same session (rating below 4).

    Raises:
        InvalidRatingError: If the rating is not an integer in [0, 5].
    """
    rating = validate_rating(rating)
    now = as_utc(now) if now is not None else utcnow()

    ease_factor = next_ease_factor(card.ease_factor, rating)

    if rating >= PASSING_RATING:
        repetition = card.repetition + 1
        interval = next_interval(repetition, card.interval, ease_factor)
    else:
        repetition = 0
        interval = FAILED_INTERVAL

    updated = replace(
        card,
        ease_factor=ease_factor,
        interval=interval,
        repetition=repetition,
        due_date=now + timedelta(days=interval),
        last_review=ReviewMark(reviewed_at=now, rating=rating),
        performance_history=card.performance_history + (rating,),
    )

    logger.debug(
        f"Reviewed {card.id}: rating={rating} ef={ease_factor:.2f} "
        f"rep={repetition} interval={interval}d"
    )

    return ReviewOutcome(
        card=updated,
        rating=rating,
        needs_immediate_re_review=rating < ACCEPTABLE_RATING,
    )
