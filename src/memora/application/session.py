"""
Review session state machine.

A session walks a queue of cards. Each card is presented, rated and either
requeued (rating below 4, shown again straight away with its updated state)
or done, after which the next card is presented. Every rating is a full
SM-2 review.

    PRESENTING --rate--> RATED --(rating < 4)--> REQUEUED --rate--> RATED ...
                               --(rating >= 4)-> DONE -> next card PRESENTING
"""

import logging
from collections import Counter
from collections.abc import Callable, Sequence
from datetime import datetime
from enum import Enum

from memora.application.scheduler import apply_review, validate_rating
from memora.domain.errors import SessionFinishedError
from memora.domain.models import Card, ReviewOutcome

logger = logging.getLogger(__name__)


class ReviewState(str, Enum):
    PRESENTING = "presenting"
    RATED = "rated"
    REQUEUED = "requeued"
    DONE = "done"


class ReviewSession:
    """
    Drives one review session over a fixed queue.

    Only the card currently in re-review is affected by low ratings; the rest
    of the queue keeps its order.
    """

    def __init__(
        self,
        queue: Sequence[Card],
        now_fn: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            queue: Cards to review, in presentation order.
            now_fn: Clock used for each review; defaults to the current UTC time.
        """
        self._queue = list(queue)
        self._now_fn = now_fn
        self._index = 0
        self._current: Card | None = self._queue[0] if self._queue else None
        self.state = ReviewState.PRESENTING if self._queue else ReviewState.DONE
        self.outcomes: list[ReviewOutcome] = []
        self.attempts: Counter[str] = Counter()
        self.transitions: list[tuple[str, ReviewState]] = []
        if self._current is not None:
            self._enter(ReviewState.PRESENTING)

    @property
    def current(self) -> Card | None:
        """The card awaiting a rating, or None once the session is finished."""
        return self._current

    @property
    def finished(self) -> bool:
        return self._current is None

    @property
    def remaining(self) -> int:
        """Cards not yet done, counting the current one."""
        return 0 if self.finished else len(self._queue) - self._index

    def _enter(self, state: ReviewState) -> None:
        self.state = state
        if self._current is not None:
            self.transitions.append((self._current.id, state))

    def rate(self, rating: int) -> ReviewOutcome:
        """
        Rate the current card.

        Raises:
            SessionFinishedError: If no card is left to rate.
            InvalidRatingError: If the rating is out of range; the session is
                left unchanged.
        """
        if self._current is None:
            raise SessionFinishedError("No card left in this session")
        validate_rating(rating)

        now = self._now_fn() if self._now_fn else None
        outcome = apply_review(self._current, rating, now=now)
        self.outcomes.append(outcome)
        self.attempts[self._current.id] += 1
        self._current = outcome.card
        self._enter(ReviewState.RATED)

        if outcome.needs_immediate_re_review:
            self._enter(ReviewState.REQUEUED)
        else:
            self._enter(ReviewState.DONE)
            self._advance()
        return outcome

    def _advance(self) -> None:
        self._index += 1
        if self._index < len(self._queue):
            self._current = self._queue[self._index]
            self._enter(ReviewState.PRESENTING)
        else:
            self._current = None
            self.state = ReviewState.DONE
            logger.debug(f"Session finished after {len(self.outcomes)} reviews")


def run_session(
    queue: Sequence[Card],
    rate_card: Callable[[Card], int],
    on_outcome: Callable[[ReviewOutcome], None] | None = None,
    now_fn: Callable[[], datetime] | None = None,
) -> ReviewSession:
    """
    Run a session to completion without any user interface.

    Args:
        queue: Cards to review.
        rate_card: Returns the rating for the card being presented.
        on_outcome: Called after every review, e.g. to persist the card.
        now_fn: Clock for the reviews.

    Returns:
        The finished session, with outcomes and attempt counts.
    """
    session = ReviewSession(queue, now_fn=now_fn)
    while session.current is not None:
        outcome = session.rate(rate_card(session.current))
        if on_outcome:
            on_outcome(outcome)
    return session
