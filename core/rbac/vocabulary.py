"""
Permission vocabulary: roles, resources, actions, scopes and permission keys.

A permission key is the ordered triple (resource, action, scope), rendered
as the token ``resource:action:scope``. Keys are compared exactly; there is
no implication between them (``requests:read:org`` does not grant
``requests:read:system``).
"""

from enum import Enum
from typing import Any, NamedTuple, Optional


# ============================================================================
# Errors
# ============================================================================

class UnknownRoleError(ValueError):
    """Raised when an external role string is not one of the known roles."""


class InvalidPermissionKey(ValueError):
    """Raised when a permission token is not ``resource:action:scope``."""


# ============================================================================
# Closed Enumerations
# ============================================================================

class Role(str, Enum):
    """Operating persona of a session. Exactly one per session."""

    ADMIN = "admin"
    BLOOD_BANK_ADMIN = "blood_bank_admin"
    BLOOD_BANK_STAFF = "blood_bank_staff"
    HOSPITAL_STAFF = "hospital_staff"
    DONOR = "donor"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """
        Convert an external role value to a Role.

        Matching is exact: no whitespace stripping and no case folding.

        Raises:
            UnknownRoleError: If the value is not a known role
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for role in cls:
                if role.value == value:
                    return role
        raise UnknownRoleError(
            f"Unknown role: {value!r}. Must be one of: "
            f"{', '.join(r.value for r in cls)}"
        )


class Resource(str, Enum):
    """Protected category of application data."""

    ORGANIZATIONS = "organizations"
    PROFILES = "profiles"
    INVENTORY = "inventory"
    REQUESTS = "requests"
    TRANSFERS = "transfers"
    DONORS = "donors"
    DONATIONS = "donations"
    AUDIT = "audit"
    COMMUNITY = "community"

    def __str__(self) -> str:
        return self.value


class Action(str, Enum):
    """
    Operation type on a resource.

    MANAGE is a capability of its own; it does not stand in for the others.
    """

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"

    def __str__(self) -> str:
        return self.value


class Scope(str, Enum):
    """Breadth of records an action covers."""

    SELF = "self"
    ORG = "org"
    ASSIGNED = "assigned"  # reserved, not granted to any role yet
    SYSTEM = "system"

    def __str__(self) -> str:
        return self.value


# ============================================================================
# Permission Key
# ============================================================================

class PermissionKey(NamedTuple):
    """Atomic unit of grant: (resource, action, scope)."""

    resource: Resource
    action: Action
    scope: Scope

    def __str__(self) -> str:
        # Fields may be plain strings when built positionally.
        return f"{self.resource}:{self.action}:{self.scope}"

    @property
    def token(self) -> str:
        """The ``resource:action:scope`` string form."""
        return str(self)

    @classmethod
    def parse(cls, token: Any) -> "PermissionKey":
        """
        Parse a ``resource:action:scope`` token.

        Args:
            token: Token string (or an existing PermissionKey)

        Returns:
            The PermissionKey

        Raises:
            InvalidPermissionKey: If the token is malformed or names an
                unknown resource, action or scope

        Examples:
            >>> str(PermissionKey.parse("inventory:read:org"))
            'inventory:read:org'
        """
        if isinstance(token, PermissionKey):
            try:
                return cls(Resource(token.resource), Action(token.action), Scope(token.scope))
            except ValueError as e:
                raise InvalidPermissionKey(f"Invalid permission key {tuple(token)!r}: {e}") from e
        if not isinstance(token, str):
            raise InvalidPermissionKey(f"Permission key must be a string, got {type(token).__name__}")

        parts = token.split(":")
        if len(parts) != 3:
            raise InvalidPermissionKey(f"Permission key must be 'resource:action:scope', got: {token!r}")

        resource, action, scope = parts
        try:
            return cls(Resource(resource), Action(action), Scope(scope))
        except ValueError as e:
            raise InvalidPermissionKey(f"Invalid permission key {token!r}: {e}") from e


def parse_role(value: Any) -> Role:
    """Module-level alias for :meth:`Role.parse`."""
    return Role.parse(value)


def coerce_role(value: Any) -> Optional[Role]:
    """
    Convert a value to a Role, or None if it is not a known role.

    Used by the decision functions so that an unrecognised identity is
    treated as holding no grants.
    """
    try:
        return Role.parse(value)
    except UnknownRoleError:
        return None


def validate_role(value: Any) -> bool:
    """
    Check if a value names a known role.

    Examples:
        >>> validate_role("donor")
        True
        >>> validate_role("Donor")
        False
        >>> validate_role("")
        False
    """
    return coerce_role(value) is not None


ALL_ROLES = frozenset(Role)
ALL_RESOURCES = frozenset(Resource)
ALL_ACTIONS = frozenset(Action)
ALL_SCOPES = frozenset(Scope)
