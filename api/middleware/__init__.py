"""API middleware modules."""

from .roles import (
    RoleResolutionMiddleware,
    RequestContext,
    get_current_user,
    require_authenticated,
    get_user_id,
    get_user_role,
    get_route_template,
)

__all__ = [
    "RoleResolutionMiddleware",
    "RequestContext",
    "get_current_user",
    "require_authenticated",
    "get_user_id",
    "get_user_role",
    "get_route_template",
]
