"""User ORM — account row with role and ban state.

Invariants:
    - id is a string UUID primary key
    - role is one of UserRole values
    - is_banned implies is_active is False
    - ban_reason/banned_by/banned_at are all NULL when is_banned is False

Design Decisions:
    - Identifiers in a separate table (user_identifiers): indexed IN lookups for
      the closure walk instead of scanning an array column
    - identifiers loaded with selectin: every closure lookup needs them
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catwatch.core.domain_types import BAN_REASON_COLUMN_LENGTH
from catwatch.db.base import Base


class User(Base):
    """Community member account."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    username: Mapped[str | None] = mapped_column(
        String(50), nullable=True, unique=True,
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="user",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    is_banned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    ban_reason: Mapped[str | None] = mapped_column(
        String(BAN_REASON_COLUMN_LENGTH), nullable=True,
    )
    banned_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    banned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    last_seen_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # Relationships
    identifiers: Mapped[list["UserIdentifier"]] = relationship(
        "UserIdentifier", back_populates="user",
        cascade="all, delete-orphan", lazy="selectin",
    )
