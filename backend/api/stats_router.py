"""API routes for review statistics."""

import logging

from fastapi import APIRouter, Depends

from backend.api.deps import get_scheduler
from backend.api.schemas import SRSStatsResponse
from backend.srs.scheduler import ReviewScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=SRSStatsResponse)
def get_stats(scheduler: ReviewScheduler = Depends(get_scheduler)) -> SRSStatsResponse:
    """Get due counts, mastery breakdown and the daily review streak."""
    stats = scheduler.stats()
    logger.debug("Stats: %d cards, %d due", stats.total_cards, stats.due_today)
    return SRSStatsResponse(
        total_cards=stats.total_cards,
        due_today=stats.due_today,
        due_tomorrow=stats.due_tomorrow,
        due_this_week=stats.due_this_week,
        mastered=stats.mastered,
        learning=stats.learning,
        new_cards=stats.new_cards,
        new_today=stats.new_today,
        review_streak=stats.review_streak,
        last_review_date=stats.last_review_date,
    )
