"""
Role-to-permission table.

The grants below are the single source of truth for authorization
decisions. They are a literal constant on purpose: changing who may do
what requires a code change.
"""

from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping

from .vocabulary import PermissionKey, Role, coerce_role


def _grants(*tokens: str) -> FrozenSet[PermissionKey]:
    # A typo in a token fails at import, not silently at check time.
    return frozenset(PermissionKey.parse(token) for token in tokens)


# ============================================================================
# Role-to-Permission Mapping
# ============================================================================

ROLE_PERMISSIONS: Mapping[Role, FrozenSet[PermissionKey]] = MappingProxyType({
    # System admin: organizations, profiles and read access across facilities
    Role.ADMIN: _grants(
        "organizations:manage:system",
        "profiles:read:system",
        "profiles:update:system",
        "inventory:read:system",
        "requests:read:system",
        "transfers:read:system",
        "donors:read:system",
        "audit:read:system",
    ),

    # Blood bank admin: everything blood bank staff can do + manage the team
    Role.BLOOD_BANK_ADMIN: _grants(
        "inventory:read:org",
        "inventory:create:org",
        "inventory:update:org",
        "requests:read:org",      # receive requests from hospitals
        "requests:update:org",    # approve/reject requests
        "transfers:read:org",     # outgoing transfers to hospitals
        "transfers:update:org",   # fulfil/dispatch transfers
        "donors:read:org",
        "donors:update:org",
        "donations:read:org",
        "profiles:read:org",      # blood bank team
        "profiles:update:org",
    ),

    Role.BLOOD_BANK_STAFF: _grants(
        "inventory:read:org",
        "inventory:create:org",
        "inventory:update:org",
        "requests:read:org",
        "requests:update:org",
        "transfers:read:org",
        "transfers:update:org",
        "donors:read:org",
        "donors:update:org",
        "donations:read:org",
    ),

    Role.HOSPITAL_STAFF: _grants(
        "requests:read:org",      # their hospital's requests
        "requests:create:org",
        "requests:update:org",
        "transfers:read:org",     # incoming transfers from blood banks
        "transfers:create:org",
        "inventory:read:org",     # received blood held by the hospital
        "inventory:update:org",
    ),

    Role.DONOR: _grants(
        "donors:read:self",
        "donors:update:self",
        "donations:read:self",
        "community:read:org",
        "community:create:self",
    ),
})


# ============================================================================
# Role Metadata
# ============================================================================

ROLE_DESCRIPTIONS: Mapping[Role, str] = MappingProxyType({
    Role.ADMIN: "System administrator managing organizations and user profiles",
    Role.BLOOD_BANK_ADMIN: "Blood bank administrator: inventory, requests, transfers, donors and team",
    Role.BLOOD_BANK_STAFF: "Blood bank staff: inventory, requests, transfers and donors",
    Role.HOSPITAL_STAFF: "Hospital staff raising blood requests and receiving transfers",
    Role.DONOR: "Registered donor with access to their own profile and donations",
})


def grants_for(role: Any) -> FrozenSet[PermissionKey]:
    """
    Get the grant set of a role.

    Args:
        role: Role (or its exact string value)

    Returns:
        Frozen set of permission keys; empty for an unknown role
    """
    resolved = coerce_role(role)
    if resolved is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(resolved, frozenset())


def get_role_description(role: Any) -> str:
    """
    Get human-readable description of a role.

    Returns:
        Role description or empty string if role is unknown
    """
    resolved = coerce_role(role)
    if resolved is None:
        return ""
    return ROLE_DESCRIPTIONS.get(resolved, "")


def list_all_roles() -> Dict[str, Dict[str, Any]]:
    """
    List all roles with their permissions and descriptions.

    Returns:
        Dictionary mapping role names to their metadata, in enum order
    """
    return {
        role.value: {
            "description": ROLE_DESCRIPTIONS.get(role, ""),
            "permissions": sorted(str(key) for key in grants_for(role)),
        }
        for role in Role
    }
