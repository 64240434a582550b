"""FastAPI application entry point and configuration."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.cards_router import router as cards_router
from backend.api.deps import build_scheduler, get_scheduler
from backend.api.stats_router import router as stats_router
from backend.config import settings
from backend.srs.scheduler import ReviewScheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the card store on startup and release its engine on shutdown."""
    if getattr(app.state, "scheduler", None) is None:
        app.state.scheduler = build_scheduler()
    yield
    engine = getattr(app.state.scheduler.store.kv, "engine", None)
    if engine is not None:
        engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Spaced repetition review scheduler",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cards_router)
app.include_router(stats_router)


@app.get("/health")
def health_check(scheduler: ReviewScheduler = Depends(get_scheduler)) -> dict[str, str]:
    """Check that the card store is reachable and return status."""
    scheduler.store.kv.read(scheduler.stats_key)
    return {"status": "ok"}
