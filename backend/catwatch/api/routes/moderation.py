"""Moderation Routes — identifier-ban propagation and single-target actions.

Invariants:
    - Propagation endpoints always return PropagationResponse with the status
      code carried by the result (403 policy veto, 404, 422, 500 partial, 503)
    - Cache invalidation runs as a background task after any mutating outcome
      (including PARTIAL_FAILURE), never before the response is built
    - Single-target endpoints raise CatwatchError; the global handler renders it
    - Every mutating endpoint requires a moderator-or-above actor (require_moderator);
      the identifier check is open to any caller
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from catwatch.api.dependencies import get_services, require_moderator
from catwatch.composition import AppServices
from catwatch.core.domain_types import UserId
from catwatch.core.identity_hashing import extract_client_ip
from catwatch.core.identity_records import PropagationResult, UserRecord
from catwatch.schemas.moderation import (
    IdentifierBanRequest, IdentifierBanStatusResponse, IdentifierUnbanRequest,
    PropagationResponse, RoleUpdateRequest, UserBanRequest, UserResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/moderation", tags=["moderation"])


def _propagation_response(
    result: PropagationResult,
    background: BackgroundTasks,
    services: AppServices,
) -> JSONResponse:
    if result.mutated and result.user_ids:
        background.add_task(services.cache.invalidate_users, list(result.user_ids))
    return JSONResponse(
        status_code=result.http_status,
        content=PropagationResponse.from_result(result).model_dump(mode="json"),
        background=background,
    )


def _user_response(
    user: UserRecord, background: BackgroundTasks, services: AppServices,
) -> UserResponse:
    background.add_task(services.cache.invalidate_users, [user.id])
    return UserResponse(**user.to_public())


@router.post("/identifier-bans", response_model=PropagationResponse)
async def ban_by_identifier(
    body: IdentifierBanRequest,
    background: BackgroundTasks,
    actor_id: UserId = Depends(require_moderator),
    services: AppServices = Depends(get_services),
):
    """Ban the user and every account linked through shared identifiers."""
    result = await services.propagation.ban_by_identifier(
        UserId(body.user_id), body.reason, actor_id,
    )
    return _propagation_response(result, background, services)


@router.post("/identifier-bans/release", response_model=PropagationResponse)
async def unban_by_identifier(
    body: IdentifierUnbanRequest,
    background: BackgroundTasks,
    actor_id: UserId = Depends(require_moderator),
    services: AppServices = Depends(get_services),
):
    """Lift identifier-propagated bans across the user's current closure."""
    result = await services.propagation.unban_by_identifier(
        UserId(body.user_id), actor_id,
    )
    return _propagation_response(result, background, services)


@router.get(
    "/identifier-bans/check", response_model=IdentifierBanStatusResponse,
)
async def check_identifier_ban(
    request: Request, services: AppServices = Depends(get_services),
):
    """Whether the caller's network address is on the banned ledger."""
    peer = request.client.host if request.client else None
    status = await services.tracking.check_banned(
        extract_client_ip(request.headers, peer),
    )
    return IdentifierBanStatusResponse(
        banned=status.banned, reason=status.reason,
        banned_by=status.banned_by, banned_at=status.banned_at,
    )


@router.post("/users/{user_id}/ban", response_model=UserResponse)
async def ban_user(
    user_id: str,
    body: UserBanRequest,
    background: BackgroundTasks,
    actor_id: UserId = Depends(require_moderator),
    services: AppServices = Depends(get_services),
):
    user = await services.moderation.ban_user(UserId(user_id), body.reason, actor_id)
    return _user_response(user, background, services)


@router.post("/users/{user_id}/unban", response_model=UserResponse)
async def unban_user(
    user_id: str,
    background: BackgroundTasks,
    actor_id: UserId = Depends(require_moderator),
    services: AppServices = Depends(get_services),
):
    user = await services.moderation.unban_user(UserId(user_id), actor_id)
    return _user_response(user, background, services)


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    body: RoleUpdateRequest,
    background: BackgroundTasks,
    actor_id: UserId = Depends(require_moderator),
    services: AppServices = Depends(get_services),
):
    user = await services.moderation.update_role(UserId(user_id), body.role, actor_id)
    return _user_response(user, background, services)
