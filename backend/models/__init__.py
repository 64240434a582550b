"""SQLAlchemy ORM models for the review scheduler database."""

from backend.models.base import Base
from backend.models.kv_record import KVRecord

__all__ = ["Base", "KVRecord"]
