"""
Tests for the permission vocabulary.

Verifies role parsing at the trust edge and the permission key encoding.
"""

import pytest

from core.rbac import (
    Role,
    Resource,
    Action,
    Scope,
    PermissionKey,
    UnknownRoleError,
    InvalidPermissionKey,
    ALL_ROLES,
    parse_role,
    coerce_role,
    validate_role,
)


class TestRoleParsing:
    """External role strings are converted exactly or rejected."""

    @pytest.mark.parametrize("value,expected", [
        ("admin", Role.ADMIN),
        ("blood_bank_admin", Role.BLOOD_BANK_ADMIN),
        ("blood_bank_staff", Role.BLOOD_BANK_STAFF),
        ("hospital_staff", Role.HOSPITAL_STAFF),
        ("donor", Role.DONOR),
        (Role.DONOR, Role.DONOR),
    ])
    def test_known_roles(self, value, expected):
        assert parse_role(value) is expected
        assert Role.parse(value) is expected

    @pytest.mark.parametrize("value", [
        "Admin",
        "ADMIN",
        " admin",
        "admin ",
        "superuser",
        "authenticated",
        "",
        None,
        42,
    ])
    def test_unknown_roles_rejected(self, value):
        with pytest.raises(UnknownRoleError):
            parse_role(value)
        assert coerce_role(value) is None
        assert validate_role(value) is False

    def test_unknown_role_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_role("nope")

    def test_five_roles(self):
        assert len(ALL_ROLES) == 5
        assert {r.value for r in ALL_ROLES} == {
            "admin", "blood_bank_admin", "blood_bank_staff", "hospital_staff", "donor",
        }

    def test_role_str_is_value(self):
        assert str(Role.HOSPITAL_STAFF) == "hospital_staff"


class TestPermissionKey:
    """Permission keys render and parse as resource:action:scope."""

    def test_render(self):
        key = PermissionKey(Resource.REQUESTS, Action.READ, Scope.ORG)
        assert str(key) == "requests:read:org"
        assert key.token == "requests:read:org"

    def test_parse(self):
        key = PermissionKey.parse("organizations:manage:system")
        assert key == PermissionKey(Resource.ORGANIZATIONS, Action.MANAGE, Scope.SYSTEM)

    def test_parse_accepts_existing_key(self):
        key = PermissionKey(Resource.DONORS, Action.READ, Scope.SELF)
        assert PermissionKey.parse(key) == key

    def test_positional_strings_render(self):
        key = PermissionKey("inventory", "read", "org")
        assert str(key) == "inventory:read:org"
        assert key.token == "inventory:read:org"

    def test_parse_normalises_positional_strings(self):
        key = PermissionKey.parse(PermissionKey("inventory", "read", "org"))
        assert key.resource is Resource.INVENTORY
        assert key.action is Action.READ
        assert key.scope is Scope.ORG
        assert str(key) == "inventory:read:org"

    def test_parse_rejects_positional_unknown_members(self):
        with pytest.raises(InvalidPermissionKey):
            PermissionKey.parse(PermissionKey("inventory", "approve", "org"))

    def test_keys_compare_by_value(self):
        assert PermissionKey.parse("inventory:read:org") == PermissionKey.parse("inventory:read:org")
        assert PermissionKey.parse("inventory:read:org") != PermissionKey.parse("inventory:read:system")

    @pytest.mark.parametrize("token", [
        "",
        "inventory",
        "inventory:read",
        "inventory:read:org:extra",
        "Inventory:read:org",
        "inventory:READ:org",
        " inventory:read:org",
        "inventory:read:org ",
        "inventory: read:org",
        "blood:read:org",
        "inventory:approve:org",
        "inventory:read:global",
    ])
    def test_parse_rejects_malformed(self, token):
        with pytest.raises(InvalidPermissionKey):
            PermissionKey.parse(token)

    def test_parse_rejects_non_string(self):
        with pytest.raises(InvalidPermissionKey):
            PermissionKey.parse(("inventory", "read", "org"))

    def test_assigned_scope_exists(self):
        assert Scope("assigned") is Scope.ASSIGNED
        assert str(PermissionKey(Resource.REQUESTS, Action.READ, Scope.ASSIGNED)) == "requests:read:assigned"
