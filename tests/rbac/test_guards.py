"""
Tests for API endpoint guards.

Tests the @require decorator and variants for permission-based route protection.
"""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from core.rbac import (
    PermissionKey,
    InvalidPermissionKey,
    configure_resolver,
    reset_resolver,
)
from api.middleware import RoleResolutionMiddleware
from api.guards import require, require_any, require_all


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def reset_global_resolver():
    """Reset global resolver before each test."""
    reset_resolver()
    yield
    reset_resolver()


API_KEYS = {
    "admin-key": {"user_id": "user-admin", "role": "admin"},
    "bank-admin-key": {"user_id": "user-bank-admin", "role": "blood_bank_admin", "organization_id": "bank-1"},
    "bank-staff-key": {"user_id": "user-bank-staff", "role": "blood_bank_staff", "organization_id": "bank-1"},
    "hospital-key": {"user_id": "user-hospital", "role": "hospital_staff", "organization_id": "hosp-1"},
    "donor-key": {"user_id": "user-donor", "role": "donor"},
    "no-role-key": {"user_id": "user-norole", "role": "superuser"},
}


def headers(key):
    return {"X-API-KEY": key}


@pytest.fixture
def app():
    """Create test FastAPI app with middleware and guarded routes."""
    app = FastAPI()

    configure_resolver(api_key_to_user_map=API_KEYS)
    app.add_middleware(RoleResolutionMiddleware)

    @app.get("/public")
    def public_route(request: Request):
        return {"message": "public"}

    @app.get("/bank/inventory")
    @require("inventory:read:org")
    def bank_inventory(request: Request):
        return {"message": "inventory"}

    @app.get("/admin/users")
    @require(PermissionKey.parse("profiles:read:system"))
    async def admin_users(request: Request):
        return {"message": "users"}

    @app.get("/requests")
    @require_any("requests:read:org", "requests:read:system")
    def list_requests(request: Request):
        return {"message": "requests"}

    @app.post("/bank/inventory")
    @require_all("inventory:read:org", "inventory:create:org")
    async def add_unit(request: Request):
        return {"message": "created"}

    @app.get("/bank/donors")
    @require(PermissionKey("donors", "read", "org"))
    def bank_donors(request: Request):
        return {"message": "donors"}

    @app.get("/nobody")
    @require_any()
    def nobody(request: Request):
        return {"message": "unreachable"}

    return app


@pytest.fixture
def client(app):
    return TestClient(app)


# ============================================================================
# @require
# ============================================================================

class TestRequire:

    def test_public_route_unguarded(self, client):
        assert client.get("/public").status_code == 200

    def test_anonymous_gets_401(self, client):
        response = client.get("/bank/inventory")
        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "unauthenticated"

    @pytest.mark.parametrize("key", ["bank-staff-key", "bank-admin-key", "hospital-key"])
    def test_allowed_roles(self, client, key):
        response = client.get("/bank/inventory", headers=headers(key))
        assert response.status_code == 200
        assert response.json() == {"message": "inventory"}

    @pytest.mark.parametrize("key", ["admin-key", "donor-key"])
    def test_denied_roles_get_403(self, client, key):
        response = client.get("/bank/inventory", headers=headers(key))
        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["error"] == "forbidden"
        assert detail["permissions"] == ["inventory:read:org"]
        assert detail["message"] == "Permission 'inventory:read:org' required"

    def test_authenticated_without_role_gets_403(self, client):
        response = client.get("/bank/inventory", headers=headers("no-role-key"))
        assert response.status_code == 403

    def test_async_route(self, client):
        assert client.get("/admin/users", headers=headers("admin-key")).status_code == 200
        assert client.get("/admin/users", headers=headers("bank-admin-key")).status_code == 403

    def test_invalid_key_fails_at_decoration(self):
        with pytest.raises(InvalidPermissionKey):
            require("inventory:read")
        with pytest.raises(InvalidPermissionKey):
            require(PermissionKey("donors", "approve", "org"))

    def test_key_built_from_strings(self, client):
        assert client.get("/bank/donors", headers=headers("bank-staff-key")).status_code == 200

        response = client.get("/bank/donors", headers=headers("hospital-key"))
        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["permissions"] == ["donors:read:org"]
        assert detail["message"] == "Permission 'donors:read:org' required"


# ============================================================================
# @require_any / @require_all
# ============================================================================

class TestRequireAny:

    @pytest.mark.parametrize("key", ["bank-staff-key", "hospital-key", "admin-key"])
    def test_any_of(self, client, key):
        assert client.get("/requests", headers=headers(key)).status_code == 200

    def test_none_of(self, client):
        response = client.get("/requests", headers=headers("donor-key"))
        assert response.status_code == 403
        assert "One of" in response.json()["detail"]["message"]

    def test_empty_requirement_denies_everyone(self, client):
        for key in API_KEYS:
            assert client.get("/nobody", headers=headers(key)).status_code == 403
        assert client.get("/nobody").status_code == 401


class TestRequireAll:

    def test_all_held(self, client):
        response = client.post("/bank/inventory", headers=headers("bank-staff-key"))
        assert response.status_code == 200
        assert response.json() == {"message": "created"}

    def test_partial_reports_missing(self, client):
        response = client.post("/bank/inventory", headers=headers("hospital-key"))
        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["missing"] == ["inventory:create:org"]
        assert detail["message"].startswith("All of")


# ============================================================================
# Misconfiguration
# ============================================================================

class TestMisconfiguration:

    def test_missing_middleware_is_500(self):
        app = FastAPI()

        @app.get("/guarded")
        @require("inventory:read:org")
        def guarded(request: Request):
            return {}

        response = TestClient(app).get("/guarded")
        assert response.status_code == 500
