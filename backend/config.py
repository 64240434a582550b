from datetime import UTC, datetime
from pathlib import Path

from pydantic_settings import BaseSettings


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Replaces the deprecated ``datetime.utcnow()`` while keeping datetimes
    naive so they stay compatible with SQLite (which doesn't store tz info).
    """
    return datetime.now(UTC).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class Settings(BaseSettings):
    app_name: str = "Review SRS"
    database_url: str = f"sqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'review_srs.db'}"
    key_namespace: str = "code-reels-srs"
    stats_key: str = "code-reels-srs-stats"
    debug: bool = False

    model_config = {"env_prefix": "REVIEW_SRS_", "env_file": ".env"}


settings = Settings()
