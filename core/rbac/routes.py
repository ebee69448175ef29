"""
Route-to-permission map and route authorization.

A route is entered when the role holds at least one of the listed
permissions. Paths are matched exactly: no trailing-slash handling and no
case folding.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Tuple

from .permissions import guard_route
from .vocabulary import PermissionKey


def _any_of(*tokens: str) -> Tuple[PermissionKey, ...]:
    return tuple(PermissionKey.parse(token) for token in tokens)


ROUTE_PERMISSIONS: Mapping[str, Tuple[PermissionKey, ...]] = MappingProxyType({
    "/admin/hospitals": _any_of("organizations:manage:system"),
    "/admin/blood-banks": _any_of("organizations:manage:system"),
    "/admin/facilities": _any_of("organizations:manage:system"),
    "/admin/users": _any_of("profiles:read:system"),

    "/bank/inventory": _any_of("inventory:read:org"),
    "/bank/audit": _any_of("inventory:read:org"),
    "/bank/requests": _any_of("requests:read:org"),
    "/bank/transfers": _any_of("transfers:read:org"),
    "/bank/donors": _any_of("donors:read:org"),
    "/bank/users": _any_of("profiles:read:org"),

    "/hospital/requests": _any_of("requests:read:org"),
    "/hospital/inventory": _any_of("inventory:read:org"),
    "/hospital/requests/history": _any_of("requests:read:org"),

    "/donor/profile": _any_of("donors:read:self"),
    "/donor/history": _any_of("donations:read:self"),
    "/donor/community": _any_of("community:read:org"),
})


class UnmappedRoutePolicy(str, Enum):
    """What a caller does with a route that has no entry in the map."""

    DENY = "deny"
    ALLOW = "allow"


def route_permissions_for(path: str) -> Tuple[PermissionKey, ...]:
    """
    Get the permissions sufficient to enter a route.

    Returns:
        Tuple of permission keys; empty if the route is not mapped.
        An empty result does not mean "public": see :func:`authorize_route`.
    """
    return ROUTE_PERMISSIONS.get(path, ())


def is_route_mapped(path: str) -> bool:
    """Check if a route has an entry in the map."""
    return path in ROUTE_PERMISSIONS


def authorize_route(
    role: Any,
    path: str,
    unmapped_policy: UnmappedRoutePolicy = UnmappedRoutePolicy.DENY,
) -> bool:
    """
    Decide whether a role may enter a route, applying a policy to
    unmapped routes.

    Args:
        role: Role of the session
        path: Route path, matched exactly
        unmapped_policy: DENY (default) or ALLOW for routes absent from the map

    Returns:
        True if navigation is allowed

    Examples:
        >>> authorize_route("donor", "/bank/inventory")
        False
        >>> authorize_route("blood_bank_staff", "/bank/inventory")
        True
        >>> authorize_route("admin", "/admin/settings")
        False
        >>> authorize_route("admin", "/admin/settings", UnmappedRoutePolicy.ALLOW)
        True
    """
    if not is_route_mapped(path):
        return UnmappedRoutePolicy(unmapped_policy) is UnmappedRoutePolicy.ALLOW
    return guard_route(role, route_permissions_for(path))
