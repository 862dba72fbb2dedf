"""Route Dependencies — service lookup, actor identity and the moderator guard.

Invariants:
    - Services come from request.app.state.services (set by the lifespan)
    - Actor identity comes from X-Actor-Id, written by the upstream auth gateway
      after JWT verification; a missing header is a 401
    - Moderation mutations require an existing actor of at least MODERATION_ROLE;
      the guard runs before any service call

Design Decisions:
    - Header over token parsing: JWT verification happens upstream, this service
      only consumes the verified subject
    - Guard raises CatwatchError subclasses so the global handler renders the
      same envelope as service-level rejections
"""

from fastapi import Depends, Header, HTTPException, Request, status

from catwatch.composition import AppServices
from catwatch.core.domain_types import UserId, UserRole
from catwatch.core.errors import (
    ErrorContext, PermissionDeniedError, ResourceNotFoundError,
)
from catwatch.core.roles import has_role_permission

MODERATION_ROLE = UserRole.MODERATOR


def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized")
    return services


def get_actor_id(
    x_actor_id: str | None = Header(None, alias="X-Actor-Id"),
) -> UserId:
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED, detail="Authentication required",
        )
    return UserId(x_actor_id.strip())


async def require_moderator(
    actor_id: UserId = Depends(get_actor_id),
    services: AppServices = Depends(get_services),
) -> UserId:
    """Actor id, once the actor is known to hold at least MODERATION_ROLE."""
    context = ErrorContext(actor_id=actor_id, operation="moderation_guard")
    actor = await services.store.find_user_by_id(actor_id)
    if actor is None:
        raise ResourceNotFoundError("Actor", actor_id, context)
    if not has_role_permission(actor.role, MODERATION_ROLE):
        raise PermissionDeniedError(
            f"Role {actor.role.value} cannot perform moderation actions", context,
        )
    return actor.id
