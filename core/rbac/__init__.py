"""
Role-Based Access Control (RBAC) module.

Provides the permission vocabulary, the role-to-permission table,
authorization decisions, role menus, route requirements, and role
resolution from JWT/API keys.
"""

from .vocabulary import (
    # Types
    Role,
    Resource,
    Action,
    Scope,
    PermissionKey,
    # Errors
    UnknownRoleError,
    InvalidPermissionKey,
    # Sets
    ALL_ROLES,
    ALL_RESOURCES,
    ALL_ACTIONS,
    ALL_SCOPES,
    # Functions
    parse_role,
    coerce_role,
    validate_role,
)

from .roles import (
    ROLE_PERMISSIONS,
    ROLE_DESCRIPTIONS,
    grants_for,
    get_role_description,
    list_all_roles,
)

from .permissions import (
    can,
    can_any,
    can_all,
    guard_route,
    missing_permissions,
    roles_with_permission,
)

from .routes import (
    ROUTE_PERMISSIONS,
    UnmappedRoutePolicy,
    route_permissions_for,
    is_route_mapped,
    authorize_route,
)

from .menus import (
    MenuItem,
    ROLE_MENUS,
    menu_for,
    menu_drift,
    menu_as_dicts,
    iter_menu_hrefs,
)

from .filters import (
    hospital_requests_filter,
    bank_requests_filter,
    inventory_by_facility_filter,
    scope_filter,
)

from .resolve import (
    ResolvedUser,
    RoleResolver,
    configure_resolver,
    get_resolver,
    reset_resolver,
)

__all__ = [
    # Vocabulary
    "Role",
    "Resource",
    "Action",
    "Scope",
    "PermissionKey",
    "UnknownRoleError",
    "InvalidPermissionKey",
    "ALL_ROLES",
    "ALL_RESOURCES",
    "ALL_ACTIONS",
    "ALL_SCOPES",
    "parse_role",
    "coerce_role",
    "validate_role",
    # Table
    "ROLE_PERMISSIONS",
    "ROLE_DESCRIPTIONS",
    "grants_for",
    "get_role_description",
    "list_all_roles",
    # Decisions
    "can",
    "can_any",
    "can_all",
    "guard_route",
    "missing_permissions",
    "roles_with_permission",
    # Routes
    "ROUTE_PERMISSIONS",
    "UnmappedRoutePolicy",
    "route_permissions_for",
    "is_route_mapped",
    "authorize_route",
    # Menus
    "MenuItem",
    "ROLE_MENUS",
    "menu_for",
    "menu_drift",
    "menu_as_dicts",
    "iter_menu_hrefs",
    # Filters
    "hospital_requests_filter",
    "bank_requests_filter",
    "inventory_by_facility_filter",
    "scope_filter",
    # Resolver
    "ResolvedUser",
    "RoleResolver",
    "configure_resolver",
    "get_resolver",
    "reset_resolver",
]
