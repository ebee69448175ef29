"""
Tests for the route-permission map and route authorization.
"""

import pytest

from core.rbac import (
    Role,
    PermissionKey,
    ROUTE_PERMISSIONS,
    UnmappedRoutePolicy,
    route_permissions_for,
    is_route_mapped,
    authorize_route,
    guard_route,
)


# (role, path, expected) for every mapped route
ROUTE_TEST_CASES = [
    (Role.ADMIN, "/admin/hospitals", True),
    (Role.ADMIN, "/admin/users", True),
    (Role.ADMIN, "/bank/inventory", False),
    (Role.ADMIN, "/donor/profile", False),

    (Role.BLOOD_BANK_ADMIN, "/bank/users", True),
    (Role.BLOOD_BANK_ADMIN, "/bank/audit", True),
    (Role.BLOOD_BANK_ADMIN, "/admin/users", False),

    (Role.BLOOD_BANK_STAFF, "/bank/inventory", True),
    (Role.BLOOD_BANK_STAFF, "/bank/donors", True),
    (Role.BLOOD_BANK_STAFF, "/bank/users", False),

    (Role.HOSPITAL_STAFF, "/hospital/requests", True),
    (Role.HOSPITAL_STAFF, "/hospital/requests/history", True),
    (Role.HOSPITAL_STAFF, "/hospital/inventory", True),
    (Role.HOSPITAL_STAFF, "/bank/donors", False),
    (Role.HOSPITAL_STAFF, "/admin/facilities", False),

    (Role.DONOR, "/donor/profile", True),
    (Role.DONOR, "/donor/history", True),
    (Role.DONOR, "/donor/community", True),
    (Role.DONOR, "/bank/inventory", False),
    (Role.DONOR, "/hospital/requests", False),
]


class TestRouteMap:
    """Static route-permission map."""

    def test_sixteen_routes(self):
        assert len(ROUTE_PERMISSIONS) == 16

    def test_lookup(self):
        assert route_permissions_for("/bank/inventory") == (PermissionKey.parse("inventory:read:org"),)
        assert route_permissions_for("/admin/users") == (PermissionKey.parse("profiles:read:system"),)

    def test_every_entry_is_non_empty(self):
        for path, required in ROUTE_PERMISSIONS.items():
            assert required, path
            assert all(isinstance(key, PermissionKey) for key in required)

    @pytest.mark.parametrize("path", [
        "/admin/settings",
        "/bank/inventory/",
        "/Bank/Inventory",
        "bank/inventory",
        "",
        "/",
    ])
    def test_unmapped_and_no_normalisation(self, path):
        assert route_permissions_for(path) == ()
        assert is_route_mapped(path) is False

    def test_map_is_read_only(self):
        with pytest.raises(TypeError):
            ROUTE_PERMISSIONS["/bank/inventory"] = ()


class TestAuthorizeRoute:
    """Route decisions with the unmapped-route policy."""

    @pytest.mark.parametrize("role,path,expected", ROUTE_TEST_CASES)
    def test_mapped_routes(self, role, path, expected):
        assert authorize_route(role, path) is expected
        assert guard_route(role, route_permissions_for(path)) is expected

    def test_unmapped_route_denied_by_default(self):
        for role in Role:
            assert authorize_route(role, "/admin/settings") is False

    def test_unmapped_route_allowed_when_asked(self):
        assert authorize_route(Role.ADMIN, "/admin/settings", UnmappedRoutePolicy.ALLOW) is True
        assert authorize_route(Role.ADMIN, "/admin/settings", "allow") is True

    def test_allow_policy_does_not_affect_mapped_routes(self):
        assert authorize_route(Role.DONOR, "/bank/inventory", UnmappedRoutePolicy.ALLOW) is False

    def test_unknown_role_denied_on_mapped_route(self):
        for path in ROUTE_PERMISSIONS:
            assert authorize_route("intruder", path) is False
            assert authorize_route(None, path) is False

    def test_guard_route_on_unmapped_is_deny(self):
        # An unmapped route yields no requirements, and an empty requirement
        # list never satisfies guard_route.
        assert guard_route(Role.ADMIN, route_permissions_for("/nowhere")) is False

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            authorize_route(Role.ADMIN, "/admin/settings", "maybe")
