"""Review scheduler: the public entry point for card scheduling.

Wires a ``CardStore`` to the ``SM2`` algorithm. Recording a review is the
only operation that mutates a card; everything else reads, or creates a
default card on first sight of an item id.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from backend.config import as_naive_utc, settings, utcnow
from backend.database import make_engine
from backend.srs.card import DifficultyTag, MasteryLevel, Rating, ReviewCard
from backend.srs.display import format_interval
from backend.srs.errors import InvalidArgumentError
from backend.srs.kv import KeyValueStore, SQLKeyValueStore
from backend.srs.sm2 import SM2
from backend.srs.store import CardStore

logger = logging.getLogger(__name__)

_IN_PROGRESS = {MasteryLevel.LEARNING, MasteryLevel.YOUNG, MasteryLevel.MATURE}


@dataclass
class SRSStats:
    """Summary counts over all cards plus the daily review streak."""

    total_cards: int = 0
    due_today: int = 0
    due_tomorrow: int = 0
    due_this_week: int = 0
    mastered: int = 0
    learning: int = 0
    new_cards: int = 0
    new_today: int = 0
    review_streak: int = 0
    last_review_date: date | None = None


@dataclass
class StreakRecord:
    review_streak: int = 0
    last_review_date: date | None = None

    def register(self, today: date) -> "StreakRecord":
        """Return the streak after a review on ``today``."""
        if self.last_review_date == today:
            return self
        if self.last_review_date == today - timedelta(days=1):
            return StreakRecord(self.review_streak + 1, today)
        return StreakRecord(1, today)

    def current(self, today: date) -> int:
        """Streak length as of ``today``; a gap of more than a day breaks it."""
        if self.last_review_date is None or self.last_review_date < today - timedelta(days=1):
            return 0
        return self.review_streak


class ReviewScheduler:
    """Decides when each item is next shown and records recall ratings."""

    def __init__(
        self,
        store: CardStore,
        algorithm: SM2 | None = None,
        stats_key: str | None = None,
    ) -> None:
        self.store = store
        self.algorithm = algorithm or SM2()
        self.stats_key = stats_key or settings.stats_key

    @classmethod
    def from_kv(cls, kv: KeyValueStore) -> "ReviewScheduler":
        return cls(CardStore(kv))

    @classmethod
    def open(cls, database_url: str | None = None) -> "ReviewScheduler":
        """Create a scheduler backed by the embedded SQL key-value store."""
        return cls.from_kv(SQLKeyValueStore(make_engine(database_url)))

    # --- cards ---

    def get_card(
        self,
        item_id: str,
        category: str,
        difficulty_tag: DifficultyTag | str,
        now: datetime | None = None,
    ) -> ReviewCard:
        """Return the card for an item, creating a due-now default if it doesn't exist."""
        return self.store.get(item_id, category, difficulty_tag, now=now)

    def add_to_review_queue(
        self,
        item_id: str,
        category: str,
        difficulty_tag: DifficultyTag | str,
        now: datetime | None = None,
    ) -> ReviewCard:
        """Seed a card without rating it. Existing cards are returned untouched."""
        return self.store.get(item_id, category, difficulty_tag, now=now)

    def is_in_review_queue(self, item_id: str) -> bool:
        return self.store.contains(item_id)

    def record_review(
        self,
        item_id: str,
        category: str,
        difficulty_tag: DifficultyTag | str,
        rating: Rating | str,
        now: datetime | None = None,
    ) -> ReviewCard:
        """Apply a recall rating to an item's card, persist it and return the new state.

        Raises:
            InvalidArgumentError: If ``rating`` or ``difficulty_tag`` is not recognised.
        """
        rating = Rating.parse(rating)
        now = as_naive_utc(now or utcnow())
        card = self.store.get(item_id, category, difficulty_tag, now=now)

        result = self.algorithm.review(card, rating, now=now)
        self.store.put(result.card)
        self._register_review(now.date())

        logger.info(
            "Recorded %s for %s: interval %d -> %d days, ease %.2f",
            rating.value,
            item_id,
            result.previous_interval_days,
            result.card.interval_days,
            result.card.ease_factor,
        )
        return result.card

    # --- queries ---

    def list_due_cards(self, as_of: datetime | None = None) -> list[ReviewCard]:
        """Cards due at or before ``as_of``, earliest first."""
        as_of = as_naive_utc(as_of or utcnow())
        due = self.store.list_due(as_of)
        logger.info("Found %d cards due as of %s", len(due), as_of.isoformat())
        return due

    def cards_due_within(self, days: int, now: datetime | None = None) -> list[ReviewCard]:
        """Cards due within the next ``days`` days (including overdue ones)."""
        if days < 0:
            raise InvalidArgumentError(f"days must be non-negative, got {days}")
        now = as_naive_utc(now or utcnow())
        return self.store.list_due(now + timedelta(days=days))

    def get_next_review_preview(self, card: ReviewCard, rating: Rating | str) -> int:
        """Interval in days that ``record_review`` would assign for ``rating``. Read-only."""
        return self.algorithm.preview_interval(card, rating)

    def preview_labels(self, card: ReviewCard) -> dict[Rating, str]:
        """Compact "next review in" strings for every rating, e.g. ``{GOOD: "3d"}``."""
        return {
            rating: format_interval(self.algorithm.preview_interval(card, rating))
            for rating in Rating
        }

    def stats(self, now: datetime | None = None) -> SRSStats:
        now = as_naive_utc(now or utcnow())
        today = now.date()
        tomorrow = today + timedelta(days=1)
        week_end = now + timedelta(days=7)
        streak = self._load_streak()

        stats = SRSStats(
            review_streak=streak.current(today),
            last_review_date=streak.last_review_date,
        )
        for card in self.store.list_all():
            stats.total_cards += 1
            if card.due_at <= now:
                stats.due_today += 1
            if card.due_at.date() == tomorrow:
                stats.due_tomorrow += 1
            if card.due_at <= week_end:
                stats.due_this_week += 1
            if card.mastery_level is MasteryLevel.MASTERED:
                stats.mastered += 1
            elif card.mastery_level in _IN_PROGRESS:
                stats.learning += 1
            else:
                stats.new_cards += 1
            if (
                card.total_reviews == 1
                and card.last_reviewed_at is not None
                and card.last_reviewed_at.date() == today
            ):
                stats.new_today += 1
        return stats

    # --- streak ---

    def _register_review(self, today: date) -> None:
        streak = self._load_streak()
        updated = streak.register(today)
        if updated is not streak:
            self._save_streak(updated)

    def _load_streak(self) -> StreakRecord:
        raw = self.store.kv.read(self.stats_key)
        if raw is None:
            return StreakRecord()
        try:
            data = json.loads(raw)
            last = data.get("lastReviewDate")
            return StreakRecord(
                review_streak=int(data.get("reviewStreak", 0)),
                last_review_date=date.fromisoformat(last) if last else None,
            )
        except (json.JSONDecodeError, UnicodeDecodeError, AttributeError, TypeError, ValueError):
            logger.warning("Ignoring malformed streak record at %s", self.stats_key)
            return StreakRecord()

    def _save_streak(self, streak: StreakRecord) -> None:
        payload = {
            "reviewStreak": streak.review_streak,
            "lastReviewDate": streak.last_review_date.isoformat() if streak.last_review_date else None,
        }
        self.store.kv.write(self.stats_key, json.dumps(payload).encode("utf-8"))
