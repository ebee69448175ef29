"""
Role inspection API endpoints.

Admin-only, read-only view of the role-permission table, role menus and
menu/table drift. Role assignment happens in the identity provider; this
service never writes roles.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, Field

from api.guards import require
from core.rbac import (
    Role,
    UnknownRoleError,
    get_role_description,
    grants_for,
    menu_as_dicts,
    menu_drift,
    menu_for,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/roles", tags=["admin", "roles"])


# ============================================================================
# Response Models
# ============================================================================

class RoleDetailResponse(BaseModel):
    """A role with its grants and menu."""
    role: str
    description: str
    permissions: List[str]
    menu: List[Dict[str, Any]] = Field(default_factory=list)


class RoleListResponse(BaseModel):
    """All roles with their grants."""
    roles: List[RoleDetailResponse]


class DriftResponse(BaseModel):
    """Menu links each role cannot enter, by role."""
    consistent: bool
    drift: Dict[str, List[str]]


def _detail(role: Role) -> RoleDetailResponse:
    return RoleDetailResponse(
        role=role.value,
        description=get_role_description(role),
        permissions=sorted(str(key) for key in grants_for(role)),
        menu=menu_as_dicts(menu_for(role)),
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.get("", response_model=RoleListResponse)
@require("profiles:read:system")
def list_roles(request: Request):
    """List every role with its grant set and menu."""
    return RoleListResponse(roles=[_detail(role) for role in Role])


@router.get("/_drift", response_model=DriftResponse)
@require("profiles:read:system")
def get_menu_drift(request: Request):
    """Report menu links that the permission table would not let the role enter."""
    drift = {role.value: menu_drift(role) for role in Role}
    drift = {role: hrefs for role, hrefs in drift.items() if hrefs}
    if drift:
        logger.warning(f"Menu/permission drift detected: {drift}")
    return DriftResponse(consistent=not drift, drift=drift)


@router.get("/{role_key}", response_model=RoleDetailResponse)
@require("profiles:read:system")
def get_role(request: Request, role_key: str):
    """Get one role's grant set and menu."""
    try:
        role = Role.parse(role_key)
    except UnknownRoleError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "unknown_role", "message": str(e)},
        )
    return _detail(role)
