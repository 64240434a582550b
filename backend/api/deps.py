"""FastAPI dependencies shared by the routers."""

import logging

from fastapi import Request

from backend.srs.scheduler import ReviewScheduler

logger = logging.getLogger(__name__)


def build_scheduler() -> ReviewScheduler:
    """Create a scheduler on the configured embedded database."""
    return ReviewScheduler.open()


def get_scheduler(request: Request) -> ReviewScheduler:
    """Return the application's scheduler, creating it on first use."""
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        logger.info("Creating review scheduler outside of application lifespan")
        scheduler = build_scheduler()
        request.app.state.scheduler = scheduler
    return scheduler
