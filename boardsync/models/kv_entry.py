"""Key-Value Entry ORM: one row per locally persisted key.

Invariants:
    - key is the primary key; writes replace the whole value
    - value is a JSON object (connection config, serialized auth session)
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from boardsync.db.base import Base


class KeyValueEntry(Base):
    """Locally persisted setting."""
    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
