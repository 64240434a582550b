"""Review card model and its JSON wire format.

A ``ReviewCard`` is the per-item scheduling record. It is serialized as a
JSON object with camelCase keys so that stored records stay readable by
other consumers of the same key-value namespace.
"""

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from backend.config import as_naive_utc, utcnow
from backend.srs.errors import InvalidArgumentError

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


class Rating(Enum):
    """Self-rated recall confidence, from worst to best."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value: "Rating | str") -> "Rating":
        """Look up a rating by its exact name; anything else is a caller error."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise InvalidArgumentError(
            f"Invalid rating {value!r}; expected one of {[r.value for r in cls]}"
        )


class DifficultyTag(Enum):
    """Informational difficulty of the underlying item. Never affects scheduling."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: "DifficultyTag | str") -> "DifficultyTag":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise InvalidArgumentError(
            f"Invalid difficulty tag {value!r}; expected one of {[d.value for d in cls]}"
        )


class MasteryLevel(Enum):
    """Display bucket summarizing review progress."""

    NEW = "new"
    LEARNING = "learning"
    YOUNG = "young"
    MATURE = "mature"
    MASTERED = "mastered"


@dataclass
class ReviewCard:
    """Scheduling state for one learnable item."""

    item_id: str
    category: str
    difficulty_tag: DifficultyTag
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    repetitions: int = 0  # Consecutive non-"again" reviews
    due_at: datetime = field(default_factory=utcnow)
    total_reviews: int = 0
    lapses: int = 0
    mastery_level: MasteryLevel = MasteryLevel.NEW
    last_reviewed_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(
        cls,
        item_id: str,
        category: str,
        difficulty_tag: DifficultyTag | str,
        now: datetime | None = None,
    ) -> "ReviewCard":
        """Create a never-reviewed card that is due immediately."""
        if not item_id:
            raise InvalidArgumentError("item_id must be a non-empty string")
        now = as_naive_utc(now or utcnow())
        return cls(
            item_id=item_id,
            category=category,
            difficulty_tag=DifficultyTag.parse(difficulty_tag),
            due_at=now,
            created_at=now,
        )

    def copy(self, **changes: object) -> "ReviewCard":
        return replace(self, **changes)  # type: ignore[arg-type]

    def is_due(self, as_of: datetime) -> bool:
        return self.due_at <= as_of

    def to_dict(self) -> dict[str, object]:
        return {
            "itemId": self.item_id,
            "category": self.category,
            "difficultyTag": self.difficulty_tag.value,
            "easeFactor": float(self.ease_factor),
            "intervalDays": int(self.interval_days),
            "repetitions": int(self.repetitions),
            "dueAt": self.due_at.isoformat(),
            "totalReviews": int(self.total_reviews),
            "lapses": int(self.lapses),
            "masteryLevel": self.mastery_level.value,
            "lastReviewedAt": self.last_reviewed_at.isoformat() if self.last_reviewed_at else None,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ReviewCard":
        """Build a card from its stored form.

        Raises:
            ValueError, KeyError or TypeError if the record is incomplete or
            holds values of the wrong type or outside the card invariants.
        """
        return cls(
            item_id=_require(data, "itemId", str),
            category=_require(data, "category", str),
            difficulty_tag=DifficultyTag(data["difficultyTag"]),
            ease_factor=_require_ease(data),
            interval_days=_require_count(data, "intervalDays"),
            repetitions=_require_count(data, "repetitions"),
            due_at=_require_timestamp(data, "dueAt"),
            total_reviews=_require_count(data, "totalReviews"),
            lapses=_require_count(data, "lapses"),
            mastery_level=MasteryLevel(data["masteryLevel"]),
            last_reviewed_at=(
                _require_timestamp(data, "lastReviewedAt")
                if data["lastReviewedAt"] is not None
                else None
            ),
            created_at=_require_timestamp(data, "createdAt"),
        )

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), ensure_ascii=False, sort_keys=True).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes) -> "ReviewCard":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
        return cls.from_dict(data)


def _require(data: dict[str, object], key: str, kind: type | tuple[type, ...]) -> object:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, kind):
        raise TypeError(f"{key} has wrong type {type(value).__name__}")
    return value


def _require_count(data: dict[str, object], key: str) -> int:
    value = _require(data, key, int)
    if value < 0:  # type: ignore[operator]
        raise ValueError(f"{key} must be non-negative, got {value}")
    return value  # type: ignore[return-value]


def _require_ease(data: dict[str, object]) -> float:
    value = float(_require(data, "easeFactor", (int, float)))  # type: ignore[arg-type]
    if value < MIN_EASE_FACTOR:
        raise ValueError(f"easeFactor must be at least {MIN_EASE_FACTOR}, got {value}")
    return value


def _require_timestamp(data: dict[str, object], key: str) -> datetime:
    # Records written by other clients may carry an offset ("Z" or "+00:00")
    return as_naive_utc(datetime.fromisoformat(_require(data, key, str)))  # type: ignore[arg-type]
