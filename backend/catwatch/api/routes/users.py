"""User Routes — cached public user view and activity (identifier) recording.

Invariants:
    - GET serves from the user view cache, loading from the store on miss
    - POST /activity hashes the client address before it reaches the store
"""

import logging

from fastapi import APIRouter, Depends, Request

from catwatch.api.dependencies import get_services
from catwatch.composition import AppServices
from catwatch.core.domain_types import UserId
from catwatch.core.errors import ResourceNotFoundError
from catwatch.core.identity_hashing import extract_client_ip
from catwatch.schemas.moderation import UserResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str, services: AppServices = Depends(get_services),
):
    view = await services.cache.get_or_load(
        UserId(user_id), services.store.find_user_by_id,
    )
    if view is None:
        raise ResourceNotFoundError("User", user_id)
    return UserResponse(**view)


@router.post("/{user_id}/activity")
async def record_activity(
    user_id: str,
    request: Request,
    services: AppServices = Depends(get_services),
):
    """Attach the caller's hashed network address to the user."""
    peer = request.client.host if request.client else None
    added = await services.tracking.record_activity(
        UserId(user_id), extract_client_ip(request.headers, peer),
    )
    return {"recorded": True, "new_identifier": added}
