"""Moderation Schemas — Pydantic models for moderation and user endpoints.

Invariants:
    - Reasons are 1..REASON_MAX_LENGTH chars, stripped, non-empty; with the
      identifier-ban prefix they still fit users.ban_reason
    - PropagationResponse mirrors PropagationResult field for field
    - Identifier hashes appear only in propagation responses (moderator surface)

Design Decisions:
    - from_result() classmethods keep mapping next to the schema, routes stay thin
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from catwatch.core.domain_types import REASON_MAX_LENGTH, PropagationStatus, UserRole
from catwatch.core.identity_records import PropagationResult, UserRecord


class _ReasonMixin(BaseModel):
    reason: str = Field(min_length=1, max_length=REASON_MAX_LENGTH)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("reason cannot be empty or whitespace")
        return v


class IdentifierBanRequest(_ReasonMixin):
    """Ban a user and every account sharing an identifier with them."""
    user_id: str = Field(min_length=1, max_length=36)


class IdentifierUnbanRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=36)


class UserBanRequest(_ReasonMixin):
    """Single-target ban; reason stored verbatim."""


class RoleUpdateRequest(BaseModel):
    role: UserRole


class UserSummary(BaseModel):
    id: str
    username: str | None = None
    role: UserRole

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserSummary":
        return cls(id=user.id, username=user.username, role=user.role)


class UserResponse(BaseModel):
    """Public user view."""
    id: str
    username: str | None = None
    role: UserRole
    is_banned: bool
    ban_reason: str | None = None
    banned_by: str | None = None
    banned_at: datetime | None = None
    is_active: bool


class PropagationResponse(BaseModel):
    success: bool
    status: PropagationStatus
    message: str
    affected_user_ids: list[str]
    affected_identifiers: list[str]
    iterations: int
    capped: bool
    blocking_users: list[UserSummary] = []

    @classmethod
    def from_result(cls, result: PropagationResult) -> "PropagationResponse":
        return cls(
            success=result.success,
            status=result.status,
            message=result.message,
            affected_user_ids=list(result.user_ids),
            affected_identifiers=list(result.identifiers),
            iterations=result.iterations,
            capped=result.capped,
            blocking_users=[UserSummary.from_record(u) for u in result.blocking_users],
        )


class IdentifierBanStatusResponse(BaseModel):
    banned: bool
    reason: str | None = None
    banned_by: str | None = None
    banned_at: datetime | None = None
