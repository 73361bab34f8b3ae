from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from posterboy.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoreEntry(Base):
    """One key of the persistent key-value store; the value is a whole JSON document."""

    __tablename__ = "store_entries"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)
