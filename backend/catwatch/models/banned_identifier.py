"""BannedIdentifier ORM — the banned-identifier ledger.

Invariants:
    - identifier is the primary key: at most one ledger row per identifier
    - Rows are written and deleted only by BanPropagationService
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from catwatch.db.base import Base


class BannedIdentifier(Base):
    """Ledger row for an identifier banned through propagation."""
    __tablename__ = "banned_identifiers"

    identifier: Mapped[str] = mapped_column(String(64), primary_key=True)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    banned_by: Mapped[str] = mapped_column(String(36), nullable=False)
    banned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
