"""
SQLAlchemy ORM models for persistent storage.

The favorites subsystem only needs an opaque key-value table: the favorites
codec decides what the blob means.
"""

from datetime import datetime

from sqlalchemy import DateTime, LargeBinary, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class KeyValueDB(Base):
    """
    One durable key-value entry.

    The favorites set lives under a single fixed key as a JSON blob.
    """

    __tablename__ = "key_values"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<KeyValueDB(key={self.key}, size={len(self.value)})>"
