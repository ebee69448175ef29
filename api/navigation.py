"""
Navigation endpoints for the front end.

Answers the three questions the router and page components ask: what is
my menu, may I enter this route, and do I hold this permission.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from api.middleware.roles import get_current_user
from core.metrics import record_rbac_check
from core.rbac import (
    InvalidPermissionKey,
    PermissionKey,
    UnmappedRoutePolicy,
    authorize_route,
    can,
    grants_for,
    is_route_mapped,
    menu_as_dicts,
    menu_for,
    route_permissions_for,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rbac", tags=["rbac"])

UNMAPPED_ROUTE_LABEL = "unmapped"


# ============================================================================
# Response Models
# ============================================================================

class SessionResponse(BaseModel):
    """Identity and grants of the current session."""
    user_id: Optional[str] = None
    role: Optional[str] = None
    organization_id: Optional[str] = None
    is_authenticated: bool
    permissions: List[str] = Field(default_factory=list)


class MenuResponse(BaseModel):
    """Navigation menu of the current session's role."""
    role: Optional[str] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)


class RouteCheckResponse(BaseModel):
    """Decision for entering a route."""
    path: str
    mapped: bool
    required: List[str]
    policy: str
    allowed: bool


class PermissionCheckResponse(BaseModel):
    """Decision for a single permission."""
    permission: str
    allowed: bool


def _role_value(role) -> Optional[str]:
    return role.value if role is not None else None


def get_unmapped_route_policy(request: Request) -> UnmappedRoutePolicy:
    """Policy for routes absent from the route map; DENY unless configured."""
    policy = getattr(request.app.state, "unmapped_route_policy", UnmappedRoutePolicy.DENY)
    return UnmappedRoutePolicy(policy)


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/me", response_model=SessionResponse)
def get_session(request: Request):
    """Current session's role and its grant set."""
    ctx = get_current_user(request)
    return SessionResponse(
        user_id=ctx.user_id,
        role=_role_value(ctx.role),
        organization_id=ctx.organization_id,
        is_authenticated=ctx.is_authenticated,
        permissions=sorted(str(key) for key in grants_for(ctx.role)),
    )


@router.get("/menu", response_model=MenuResponse)
def get_menu(request: Request):
    """Navigation menu for the current session's role (empty without a role)."""
    ctx = get_current_user(request)
    return MenuResponse(
        role=_role_value(ctx.role),
        items=menu_as_dicts(menu_for(ctx.role)),
    )


@router.get("/routes/check", response_model=RouteCheckResponse)
def check_route(request: Request, path: str = Query(..., description="Route path, matched exactly")):
    """
    Decide whether the current session may enter a route.

    Routes absent from the route map follow the configured unmapped-route
    policy, which defaults to deny.
    """
    ctx = get_current_user(request)
    policy = get_unmapped_route_policy(request)
    required = route_permissions_for(path)

    allowed = authorize_route(ctx.role, path, policy)
    mapped = is_route_mapped(path)
    # Unmapped paths are client input; they share one metric series.
    record_rbac_check(
        allowed=allowed,
        permissions=required,
        role=ctx.role,
        route=path if mapped else UNMAPPED_ROUTE_LABEL,
    )

    if not allowed:
        logger.info(f"Route denied: user_id={ctx.user_id}, role={ctx.role}, path={path}")

    return RouteCheckResponse(
        path=path,
        mapped=mapped,
        required=[str(key) for key in required],
        policy=policy.value,
        allowed=allowed,
    )


@router.get("/can", response_model=PermissionCheckResponse)
def check_permission(request: Request, permission: str = Query(..., description="resource:action:scope")):
    """Decide whether the current session holds a permission."""
    ctx = get_current_user(request)

    try:
        key = PermissionKey.parse(permission)
    except InvalidPermissionKey as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "invalid_permission", "message": str(e)},
        )

    return PermissionCheckResponse(permission=str(key), allowed=can(ctx.role, key))
