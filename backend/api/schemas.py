"""Pydantic schemas for API request/response models."""

from datetime import date, datetime

from pydantic import BaseModel

# --- Cards ---


class CardResponse(BaseModel):
    """Scheduling state of one item."""

    item_id: str
    category: str
    difficulty_tag: str
    ease_factor: float
    interval_days: int
    repetitions: int
    due_at: datetime
    total_reviews: int
    lapses: int
    mastery_level: str
    mastery_label: str
    mastery_color: str
    last_reviewed_at: datetime | None
    created_at: datetime


class AddCardRequest(BaseModel):
    """Request to put an item into the review queue without rating it."""

    item_id: str
    category: str
    difficulty_tag: str = "medium"


class ReviewRequest(BaseModel):
    """Request to record a recall rating for an item."""

    category: str
    difficulty_tag: str = "medium"
    rating: str  # again, hard, good, easy


class PreviewEntry(BaseModel):
    interval_days: int
    label: str


class PreviewResponse(BaseModel):
    """What each rating would schedule, without committing anything."""

    item_id: str
    previews: dict[str, PreviewEntry]


class DueCardsResponse(BaseModel):
    as_of: datetime
    count: int
    cards: list[CardResponse]


# --- Stats ---


class SRSStatsResponse(BaseModel):
    """Overall review statistics."""

    total_cards: int
    due_today: int
    due_tomorrow: int
    due_this_week: int
    mastered: int
    learning: int
    new_cards: int
    new_today: int
    review_streak: int
    last_review_date: date | None
