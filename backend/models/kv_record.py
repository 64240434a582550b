"""Raw key-value record backing the embedded card store."""

from sqlalchemy import LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.models.base import Base, TimestampMixin


class KVRecord(Base, TimestampMixin):
    """One serialized value under a namespaced key (e.g. ``code-reels-srs:card:q-42``)."""

    __tablename__ = "kv_records"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
