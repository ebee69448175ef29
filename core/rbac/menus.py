"""
Role-specific navigation menus.

Each role has a fixed layout. Before a layout is returned, every linked
item is checked against the route map so that a menu can never offer a
route its role is not allowed to enter.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .permissions import guard_route
from .routes import is_route_mapped, route_permissions_for
from .vocabulary import Role, coerce_role


@dataclass(frozen=True)
class MenuItem:
    """Navigation node. Children are a tuple so menus stay immutable."""

    key: str
    label: str
    href: Optional[str] = None
    children: Tuple["MenuItem", ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"key": self.key, "label": self.label}
        if self.href is not None:
            data["href"] = self.href
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


# ============================================================================
# Layouts
# ============================================================================

_ADMIN_MENU = (
    MenuItem("orgs", "Organizations", children=(
        MenuItem("hospitals", "Hospitals", "/admin/hospitals"),
        MenuItem("blood-banks", "Blood Banks", "/admin/blood-banks"),
        MenuItem("facilities", "Facilities", "/admin/facilities"),
    )),
    MenuItem("users", "Users", "/admin/users"),
    MenuItem("settings", "Settings", "/admin/settings"),
)

_BANK_STAFF_MENU = (
    MenuItem("inventory", "Inventory", "/bank/inventory"),
    MenuItem("requests", "Requests", "/bank/requests"),
    MenuItem("transfers", "Transfers", "/bank/transfers"),
    MenuItem("donors", "Donors", "/bank/donors"),
)

_BANK_ADMIN_MENU = _BANK_STAFF_MENU + (
    MenuItem("team", "Team", "/bank/users"),
)

_HOSPITAL_MENU = (
    MenuItem("requests", "Requests", "/hospital/requests"),
    MenuItem("inventory", "Inventory", "/hospital/inventory"),
    MenuItem("history", "Request History", "/hospital/requests/history"),
)

_DONOR_MENU = (
    MenuItem("profile", "My Profile", "/donor/profile"),
    MenuItem("history", "Donation History", "/donor/history"),
    MenuItem("community", "Community", "/donor/community"),
)

ROLE_MENUS: Mapping[Role, Tuple[MenuItem, ...]] = MappingProxyType({
    Role.ADMIN: _ADMIN_MENU,
    Role.BLOOD_BANK_ADMIN: _BANK_ADMIN_MENU,
    Role.BLOOD_BANK_STAFF: _BANK_STAFF_MENU,
    Role.HOSPITAL_STAFF: _HOSPITAL_MENU,
    Role.DONOR: _DONOR_MENU,
})


# ============================================================================
# Builder
# ============================================================================

def _layout_for(role: Any) -> Tuple[MenuItem, ...]:
    resolved = coerce_role(role)
    if resolved is None:
        return ()
    return ROLE_MENUS.get(resolved, ())


def _can_follow(role: Role, item: MenuItem) -> bool:
    # Links without a route-map entry are left to the page itself.
    if item.href is None or not is_route_mapped(item.href):
        return True
    return guard_route(role, route_permissions_for(item.href))


def _filter(role: Role, items: Iterable[MenuItem]) -> Tuple[MenuItem, ...]:
    kept = []
    for item in items:
        if not _can_follow(role, item):
            continue
        if item.children:
            children = _filter(role, item.children)
            if not children and item.href is None:
                continue
            if children != item.children:
                item = MenuItem(item.key, item.label, item.href, children)
        kept.append(item)
    return tuple(kept)


def menu_for(role: Any) -> Tuple[MenuItem, ...]:
    """
    Build the navigation menu of a role.

    Args:
        role: Role (or its exact string value)

    Returns:
        Immutable tuple of menu items; empty for an unknown role
    """
    resolved = coerce_role(role)
    if resolved is None:
        return ()
    return _filter(resolved, _layout_for(resolved))


def iter_menu_hrefs(items: Iterable[MenuItem]) -> Iterator[str]:
    """Yield every href in a menu tree, depth first."""
    for item in items:
        if item.href is not None:
            yield item.href
        yield from iter_menu_hrefs(item.children)


def menu_drift(role: Any) -> List[str]:
    """
    List hrefs in a role's layout that the role cannot enter.

    A non-empty result means the menu layout and the permission table
    disagree. :func:`menu_for` already hides these items.
    """
    resolved = coerce_role(role)
    if resolved is None:
        return []
    return [
        href for href in iter_menu_hrefs(_layout_for(resolved))
        if is_route_mapped(href) and not guard_route(resolved, route_permissions_for(href))
    ]


def menu_as_dicts(items: Iterable[MenuItem]) -> List[Dict[str, Any]]:
    """JSON-ready projection of a menu."""
    return [item.to_dict() for item in items]
