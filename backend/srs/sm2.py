"""SM-2 variant used to schedule reviews.

Each review moves a card through the state triple
(repetitions, interval_days, ease_factor):

- Ease factor: a fixed additive delta per rating, floored at 1.3.
- "Again" is a lapse: repetitions reset and the card comes back tomorrow.
- Successful ratings graduate through two short fixed steps
  (1 day, then 3 days; "easy" skips ahead to 2 and 4), after which the
  interval grows multiplicatively by ease factor and a rating multiplier.
- Once in the multiplicative regime a successful review always grows the
  interval by at least one day, even with the ease factor at its floor.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from backend.config import as_naive_utc, utcnow
from backend.srs.card import MIN_EASE_FACTOR, MasteryLevel, Rating, ReviewCard

logger = logging.getLogger(__name__)

EASE_DELTAS = {
    Rating.AGAIN: -0.20,
    Rating.HARD: -0.15,
    Rating.GOOD: 0.00,
    Rating.EASY: +0.15,
}

# Multiplier applied on top of the ease factor once repetitions >= 2
RATING_MULTIPLIERS = {
    Rating.HARD: 0.8,
    Rating.GOOD: 1.0,
    Rating.EASY: 1.3,
}

# Graduating steps: (interval for hard/good, interval for easy), indexed by repetitions
GRADUATING_STEPS = [
    (1, 2),
    (3, 4),
]

RELEARN_INTERVAL_DAYS = 1
MASTERED_INTERVAL_DAYS = 21


@dataclass(frozen=True)
class IntervalStep:
    """Outcome of the ease/interval transition, before any timestamps are applied."""

    ease_factor: float
    interval_days: int
    repetitions: int
    lapsed: bool


@dataclass
class ReviewResult:
    """The result of applying a review to a card."""

    card: ReviewCard
    rating: Rating
    previous_interval_days: int

    @property
    def interval_days(self) -> int:
        return self.card.interval_days


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up (``round`` would go to even)."""
    return int(math.floor(value + 0.5))


def update_ease_factor(ease_factor: float, rating: Rating) -> float:
    # Deltas are multiples of 0.05; rounding keeps repeated updates from drifting
    return max(MIN_EASE_FACTOR, round(ease_factor + EASE_DELTAS[rating], 2))


def mastery_level(repetitions: int, interval_days: int, total_reviews: int) -> MasteryLevel:
    """Derive the display bucket from a card's (already updated) counters."""
    if repetitions == 0:
        return MasteryLevel.NEW if total_reviews == 0 else MasteryLevel.LEARNING
    if repetitions == 1:
        # Deliberately not "young": after one graduating step a card is still learning.
        # good, good, good must read learning, young, mature (see test_scenario_sequence).
        return MasteryLevel.LEARNING
    if repetitions == 2:
        return MasteryLevel.YOUNG
    if interval_days < MASTERED_INTERVAL_DAYS:
        return MasteryLevel.MATURE
    return MasteryLevel.MASTERED


class SM2:
    """Stateless SM-2 scheduler. All methods are pure."""

    def next_step(self, card: ReviewCard, rating: Rating | str) -> IntervalStep:
        """Compute the new ease factor, interval and repetition count for a rating."""
        rating = Rating.parse(rating)
        ease = update_ease_factor(card.ease_factor, rating)

        if rating is Rating.AGAIN:
            return IntervalStep(
                ease_factor=ease,
                interval_days=RELEARN_INTERVAL_DAYS,
                repetitions=0,
                lapsed=True,
            )

        if card.repetitions < len(GRADUATING_STEPS):
            standard, easy = GRADUATING_STEPS[card.repetitions]
            interval = easy if rating is Rating.EASY else standard
        else:
            interval = self._grown_interval(card.interval_days, ease, rating)

        return IntervalStep(
            ease_factor=ease,
            interval_days=max(1, interval),
            repetitions=card.repetitions + 1,
            lapsed=False,
        )

    def preview_interval(self, card: ReviewCard, rating: Rating | str) -> int:
        """Days until the card would next be due if rated ``rating`` now."""
        return self.next_step(card, rating).interval_days

    def review(
        self,
        card: ReviewCard,
        rating: Rating | str,
        now: datetime | None = None,
    ) -> ReviewResult:
        """Apply a rating and return the updated card. ``card`` is not modified.

        Args:
            card: Current card state.
            rating: again, hard, good or easy.
            now: Review time (defaults to utcnow).

        Raises:
            InvalidArgumentError: If ``rating`` is not one of the four ratings.
        """
        rating = Rating.parse(rating)
        now = as_naive_utc(now or utcnow())
        step = self.next_step(card, rating)

        total_reviews = card.total_reviews + 1
        updated = card.copy(
            ease_factor=step.ease_factor,
            interval_days=step.interval_days,
            repetitions=step.repetitions,
            lapses=card.lapses + 1 if step.lapsed else card.lapses,
            due_at=now + timedelta(days=step.interval_days),
            total_reviews=total_reviews,
            last_reviewed_at=now,
            mastery_level=mastery_level(step.repetitions, step.interval_days, total_reviews),
        )
        return ReviewResult(card=updated, rating=rating, previous_interval_days=card.interval_days)

    def _grown_interval(self, previous: int, ease_factor: float, rating: Rating) -> int:
        """Multiplicative growth for mature cards, never less than previous + 1."""
        grown = round_half_up(previous * ease_factor * RATING_MULTIPLIERS[rating])
        return max(previous + 1, grown)
