"""
Tests for role menus.
"""

import dataclasses
from unittest.mock import patch

import pytest

from core.rbac import (
    Role,
    MenuItem,
    ROLE_MENUS,
    menu_for,
    menu_drift,
    menu_as_dicts,
    iter_menu_hrefs,
)
import core.rbac.menus as menus_module


def hrefs(role):
    return list(iter_menu_hrefs(menu_for(role)))


class TestMenuTotality:
    """Every role gets a menu; unknown roles get nothing."""

    @pytest.mark.parametrize("role", list(Role))
    def test_every_role_has_a_menu(self, role):
        items = menu_for(role)
        assert items is not None
        assert isinstance(items, tuple)
        assert len(items) > 0

    def test_admin_menu_has_users(self):
        assert "/admin/users" in hrefs(Role.ADMIN)

    def test_donor_menu_has_profile(self):
        assert "/donor/profile" in hrefs(Role.DONOR)

    @pytest.mark.parametrize("role", ["intruder", "", None, "Admin"])
    def test_unknown_role_gets_empty_menu(self, role):
        assert menu_for(role) == ()

    def test_string_role(self):
        assert menu_for("donor") == menu_for(Role.DONOR)


class TestMenuContent:
    """Layouts per role."""

    def test_admin_layout(self):
        items = menu_for(Role.ADMIN)
        assert [item.key for item in items] == ["orgs", "users", "settings"]
        orgs = items[0]
        assert orgs.href is None
        assert [child.href for child in orgs.children] == [
            "/admin/hospitals", "/admin/blood-banks", "/admin/facilities",
        ]
        # Settings has no route-map entry and stays in the menu.
        assert items[2].href == "/admin/settings"

    def test_bank_admin_has_team(self):
        assert hrefs(Role.BLOOD_BANK_ADMIN) == [
            "/bank/inventory", "/bank/requests", "/bank/transfers", "/bank/donors", "/bank/users",
        ]

    def test_bank_staff_has_no_team(self):
        assert "/bank/users" not in hrefs(Role.BLOOD_BANK_STAFF)
        assert len(menu_for(Role.BLOOD_BANK_STAFF)) == 4

    def test_hospital_menu(self):
        assert [item.label for item in menu_for(Role.HOSPITAL_STAFF)] == [
            "Requests", "Inventory", "Request History",
        ]

    def test_donor_menu(self):
        assert hrefs(Role.DONOR) == ["/donor/profile", "/donor/history", "/donor/community"]


class TestMenuImmutability:
    """Callers cannot mutate the returned menus."""

    def test_items_are_frozen(self):
        item = menu_for(Role.DONOR)[0]
        with pytest.raises(dataclasses.FrozenInstanceError):
            item.label = "Hacked"

    def test_sequence_is_a_tuple(self):
        items = menu_for(Role.ADMIN)
        with pytest.raises(TypeError):
            items[0] = MenuItem("x", "X")
        assert isinstance(items[0].children, tuple)

    def test_repeated_calls_equal(self):
        for role in Role:
            assert menu_for(role) == menu_for(role)


class TestMenuDrift:
    """Menu links are checked against the route map."""

    @pytest.mark.parametrize("role", list(Role))
    def test_shipped_menus_are_consistent(self, role):
        assert menu_drift(role) == []

    def test_filtered_menu_equals_layout_when_consistent(self):
        for role in Role:
            assert menu_for(role) == ROLE_MENUS[role]

    def test_drifted_item_is_hidden(self):
        drifted = dict(ROLE_MENUS)
        drifted[Role.DONOR] = ROLE_MENUS[Role.DONOR] + (
            MenuItem("stock", "Stock", "/bank/inventory"),
        )
        with patch.object(menus_module, "ROLE_MENUS", drifted):
            assert menu_drift(Role.DONOR) == ["/bank/inventory"]
            assert "/bank/inventory" not in hrefs(Role.DONOR)
            assert "/donor/profile" in hrefs(Role.DONOR)

    def test_parent_without_visible_children_is_dropped(self):
        drifted = dict(ROLE_MENUS)
        drifted[Role.HOSPITAL_STAFF] = ROLE_MENUS[Role.HOSPITAL_STAFF] + (
            MenuItem("orgs", "Organizations", children=(
                MenuItem("hospitals", "Hospitals", "/admin/hospitals"),
            )),
        )
        with patch.object(menus_module, "ROLE_MENUS", drifted):
            keys = [item.key for item in menu_for(Role.HOSPITAL_STAFF)]
            assert "orgs" not in keys
            assert menu_drift(Role.HOSPITAL_STAFF) == ["/admin/hospitals"]

    def test_unknown_role_drift_is_empty(self):
        assert menu_drift("intruder") == []


class TestMenuSerialisation:
    """JSON projection."""

    def test_as_dicts(self):
        data = menu_as_dicts(menu_for(Role.ADMIN))
        assert data[0] == {
            "key": "orgs",
            "label": "Organizations",
            "children": [
                {"key": "hospitals", "label": "Hospitals", "href": "/admin/hospitals"},
                {"key": "blood-banks", "label": "Blood Banks", "href": "/admin/blood-banks"},
                {"key": "facilities", "label": "Facilities", "href": "/admin/facilities"},
            ],
        }
        assert data[1] == {"key": "users", "label": "Users", "href": "/admin/users"}

    def test_empty(self):
        assert menu_as_dicts(menu_for(None)) == []
