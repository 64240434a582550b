"""API routes for review cards: lookup, queueing, rating and previews."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from backend.api.deps import get_scheduler
from backend.api.schemas import (
    AddCardRequest,
    CardResponse,
    DueCardsResponse,
    PreviewEntry,
    PreviewResponse,
    ReviewRequest,
)
from backend.config import as_naive_utc, utcnow
from backend.srs.card import ReviewCard
from backend.srs.display import get_mastery_color, get_mastery_label
from backend.srs.errors import InvalidArgumentError
from backend.srs.scheduler import ReviewScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["cards"])


def card_response(card: ReviewCard) -> CardResponse:
    return CardResponse(
        item_id=card.item_id,
        category=card.category,
        difficulty_tag=card.difficulty_tag.value,
        ease_factor=card.ease_factor,
        interval_days=card.interval_days,
        repetitions=card.repetitions,
        due_at=card.due_at,
        total_reviews=card.total_reviews,
        lapses=card.lapses,
        mastery_level=card.mastery_level.value,
        mastery_label=get_mastery_label(card.mastery_level),
        mastery_color=get_mastery_color(card.mastery_level),
        last_reviewed_at=card.last_reviewed_at,
        created_at=card.created_at,
    )


@router.get("/cards/{item_id}", response_model=CardResponse)
def get_card(
    item_id: str,
    category: str,
    difficulty_tag: str = "medium",
    scheduler: ReviewScheduler = Depends(get_scheduler),
) -> CardResponse:
    """Get an item's card, creating a due-now card on first sight."""
    try:
        card = scheduler.get_card(item_id, category, difficulty_tag)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return card_response(card)


@router.post("/cards", response_model=CardResponse, status_code=201)
def add_card(
    request: AddCardRequest,
    scheduler: ReviewScheduler = Depends(get_scheduler),
) -> CardResponse:
    """Add an item to the review queue without rating it."""
    try:
        card = scheduler.add_to_review_queue(
            request.item_id, request.category, request.difficulty_tag
        )
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return card_response(card)


@router.post("/cards/{item_id}/reviews", response_model=CardResponse)
def record_review(
    item_id: str,
    request: ReviewRequest,
    scheduler: ReviewScheduler = Depends(get_scheduler),
) -> CardResponse:
    """Record a recall rating and return the rescheduled card."""
    try:
        card = scheduler.record_review(
            item_id, request.category, request.difficulty_tag, request.rating
        )
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return card_response(card)


@router.get("/cards/{item_id}/preview", response_model=PreviewResponse)
def preview(
    item_id: str,
    scheduler: ReviewScheduler = Depends(get_scheduler),
) -> PreviewResponse:
    """Show the interval each rating would produce for an existing card."""
    card = scheduler.store.find(item_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")

    labels = scheduler.preview_labels(card)
    previews = {
        rating.value: PreviewEntry(
            interval_days=scheduler.get_next_review_preview(card, rating),
            label=label,
        )
        for rating, label in labels.items()
    }
    return PreviewResponse(item_id=item_id, previews=previews)


@router.get("/due", response_model=DueCardsResponse)
def list_due(
    as_of: datetime | None = None,
    scheduler: ReviewScheduler = Depends(get_scheduler),
) -> DueCardsResponse:
    """List cards due for review, earliest first."""
    as_of = as_naive_utc(as_of or utcnow())
    cards = scheduler.list_due_cards(as_of)
    return DueCardsResponse(
        as_of=as_of,
        count=len(cards),
        cards=[card_response(card) for card in cards],
    )
