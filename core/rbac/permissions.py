"""
Authorization decision functions.

Every function here is pure and fail-closed: an unknown role, a malformed
permission key or an empty requirement list all resolve to "deny".
Denial is a ``False`` return, never an exception.
"""

import logging
from typing import Any, Iterable, List, Optional, Set

from .roles import grants_for
from .vocabulary import InvalidPermissionKey, PermissionKey, Role, coerce_role

logger = logging.getLogger(__name__)


def _as_key(permission: Any) -> Optional[PermissionKey]:
    try:
        return PermissionKey.parse(permission)
    except InvalidPermissionKey:
        logger.warning(f"Unknown permission key: {permission!r}")
        return None


# ============================================================================
# Authorization Functions
# ============================================================================

def can(role: Any, permission: Any) -> bool:
    """
    Check if a role holds a permission.

    Args:
        role: Role (or its exact string value)
        permission: PermissionKey or its ``resource:action:scope`` token

    Returns:
        True if the permission is in the role's grant set, False otherwise

    Examples:
        >>> can(Role.HOSPITAL_STAFF, "requests:read:org")
        True
        >>> can(Role.HOSPITAL_STAFF, "requests:read:system")
        False
        >>> can("superuser", "requests:read:org")
        False
    """
    if coerce_role(role) is None:
        if role:
            logger.warning(f"Unknown role: {role!r}")
        return False

    key = _as_key(permission)
    if key is None:
        return False

    return key in grants_for(role)


def can_any(role: Any, permissions: Iterable[Any]) -> bool:
    """
    Check if a role holds at least one of the permissions.

    An empty list is never satisfied. Callers that want unconditional
    access must not call this at all.

    Examples:
        >>> can_any(Role.DONOR, ["inventory:read:org", "donors:read:self"])
        True
        >>> can_any(Role.ADMIN, [])
        False
    """
    return any(can(role, permission) for permission in permissions)


def guard_route(role: Any, required: Iterable[Any]) -> bool:
    """
    Decide whether a role may navigate to a route.

    Same logic as :func:`can_any`; kept under its own name for router
    transition hooks as opposed to component-level visibility checks.
    """
    return can_any(role, required)


def can_all(role: Any, permissions: Iterable[Any]) -> bool:
    """
    Check if a role holds every one of the permissions.

    Unlike :func:`can_any`, an empty list is vacuously satisfied, but only
    for a known role.
    """
    if coerce_role(role) is None:
        return False
    return all(can(role, permission) for permission in permissions)


def missing_permissions(role: Any, required: Iterable[Any]) -> Set[str]:
    """
    Get the required permission tokens a role does not hold.

    Examples:
        >>> sorted(missing_permissions(Role.BLOOD_BANK_STAFF, ["profiles:read:org", "inventory:read:org"]))
        ['profiles:read:org']
    """
    return {str(permission) for permission in required if not can(role, permission)}


def roles_with_permission(permission: Any) -> List[Role]:
    """
    Get all roles that hold a permission, in enum order.

    Examples:
        >>> [r.value for r in roles_with_permission("profiles:read:org")]
        ['blood_bank_admin']
    """
    key = _as_key(permission)
    if key is None:
        return []
    return [role for role in Role if key in grants_for(role)]
