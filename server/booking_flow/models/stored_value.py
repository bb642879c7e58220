"""Stored value model backing the per-key draft snapshots."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class StoredValue(Base):
    """One serialized value under a (scope, key) pair."""

    __tablename__ = "stored_values"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # e.g. "draft:<session id>" or "auth:<session id>"
    scope: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(64), nullable=False)

    # JSON text
    value: Mapped[str] = mapped_column(Text, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("scope", "key", name="uq_stored_value_scope_key"),
        CheckConstraint("length(scope) > 0", name="ck_stored_value_scope_not_empty"),
        CheckConstraint("length(key) > 0", name="ck_stored_value_key_not_empty"),
    )

    def __repr__(self) -> str:
        return f"<StoredValue(scope={self.scope!r}, key={self.key!r})>"
