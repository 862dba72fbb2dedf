"""UserIdentifier ORM — one hashed network identifier seen on one user.

Invariants:
    - (user_id, identifier) is unique (composite primary key)
    - identifier is a 64-char HMAC-SHA256 hex digest, never a raw address
    - identifier is indexed: the closure walk queries by it
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catwatch.db.base import Base


class UserIdentifier(Base):
    """Edge of the bipartite user/identifier graph."""
    __tablename__ = "user_identifiers"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
    )
    identifier: Mapped[str] = mapped_column(
        String(64), primary_key=True, index=True,
    )
    first_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    user: Mapped["User"] = relationship("User", back_populates="identifiers")
