"""
Row filters matching a role's read scope.

These are plain equality filters (column -> value) for the data store
collaborator to apply. They narrow what a caller asks for; the store's own
row-level security still has the final say.
"""

from typing import Any, Dict, Optional

from .permissions import can
from .vocabulary import Action, PermissionKey, Resource, Role, Scope, coerce_role

Filters = Dict[str, Any]

# Column holding the owning facility, per resource, for org-scoped reads.
# Requests are the exception: see scope_filter.
ORG_COLUMNS: Dict[Resource, str] = {
    Resource.INVENTORY: "facility_id",
    Resource.TRANSFERS: "facility_id",
    Resource.DONORS: "facility_id",
    Resource.DONATIONS: "facility_id",
    Resource.PROFILES: "organization_id",
    Resource.COMMUNITY: "organization_id",
    Resource.AUDIT: "facility_id",
    Resource.ORGANIZATIONS: "id",
}

SELF_COLUMN = "user_id"


def hospital_requests_filter(org_id: str) -> Filters:
    """Requests raised by a hospital."""
    return {"hospital_id": org_id}


def bank_requests_filter(bank_id: str) -> Filters:
    """Requests assigned to a blood bank."""
    return {"assigned_blood_bank_id": bank_id}


def inventory_by_facility_filter(facility_id: str) -> Filters:
    """Inventory units held at a facility."""
    return {"facility_id": facility_id}


def scope_filter(
    role: Any,
    resource: Resource,
    org_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Optional[Filters]:
    """
    Build the read filter for a resource from the widest scope the role holds.

    Args:
        role: Role of the caller
        resource: Resource being read
        org_id: Caller's facility/organization id (for org scope)
        user_id: Caller's user id (for self scope)

    Returns:
        ``{}`` for system scope, a single-column filter for org or self
        scope, or None if the role may not read the resource (or the id
        the scope needs is missing)

    Examples:
        >>> scope_filter("admin", Resource.REQUESTS)
        {}
        >>> scope_filter("hospital_staff", Resource.REQUESTS, org_id="h1")
        {'hospital_id': 'h1'}
        >>> scope_filter("donor", Resource.DONATIONS, user_id="u1")
        {'user_id': 'u1'}
        >>> scope_filter("donor", Resource.INVENTORY, org_id="b1") is None
        True
    """
    resource = Resource(resource)

    if can(role, PermissionKey(resource, Action.READ, Scope.SYSTEM)):
        return {}

    if can(role, PermissionKey(resource, Action.READ, Scope.ORG)):
        if not org_id:
            return None
        if resource is Resource.REQUESTS:
            if coerce_role(role) is Role.HOSPITAL_STAFF:
                return hospital_requests_filter(org_id)
            return bank_requests_filter(org_id)
        if resource is Resource.INVENTORY:
            return inventory_by_facility_filter(org_id)
        return {ORG_COLUMNS[resource]: org_id}

    if can(role, PermissionKey(resource, Action.READ, Scope.SELF)):
        if not user_id:
            return None
        return {SELF_COLUMN: user_id}

    return None
