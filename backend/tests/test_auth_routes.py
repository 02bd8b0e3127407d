"""
Auth API and guard tests.

Verifies:
- Register / login / refresh / me / logout contracts
- Disabled accounts cannot log in or refresh
- Guard taxonomy: NoToken, InvalidToken, TokenExpired (401), InsufficientRole (403)
"""

from datetime import timedelta

import pytest

from pharmacy.domain import Role
from pharmacy.services.token_service import TokenService

from conftest import PASSWORD, auth_headers


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


# =============================================================================
# REGISTRATION & LOGIN
# =============================================================================


class TestRegister:
    def test_register_returns_tokens_and_user(self, client):
        resp = client.post("/api/auth/register", json={
            "email": "New.User@Example.com",
            "password": "hunter22",
            "fullName": "New User",
        })

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["status"] == "success"
        assert body["accessToken"] and body["refreshToken"]
        assert body["user"]["email"] == "new.user@example.com"
        assert body["user"]["fullName"] == "New User"
        assert body["user"]["role"] == "USER"
        assert "passwordHash" not in body["user"]

    def test_duplicate_email_conflicts(self, client, customer):
        resp = client.post("/api/auth/register", json={
            "email": "CUSTOMER@example.com",
            "password": "hunter22",
            "fullName": "Someone Else",
        })

        assert resp.status_code == 409
        assert resp.get_json()["error"] == "DuplicateEmail"

    def test_short_password_is_rejected(self, client):
        resp = client.post("/api/auth/register", json={
            "email": "a@example.com",
            "password": "12345",
            "fullName": "A",
        })

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "ValidationFailed"

    @pytest.mark.parametrize("payload", [
        {"email": "a@example.com", "password": "hunter22"},
        {"email": "not-an-email", "password": "hunter22", "fullName": "A"},
        {"email": "a@example.com", "password": "hunter22", "fullName": "A", "role": "ADMIN"},
    ])
    def test_invalid_payloads(self, client, payload):
        resp = client.post("/api/auth/register", json=payload)
        assert resp.status_code == 400

    def test_registered_user_cannot_pick_admin_role(self, client, services):
        client.post("/api/auth/register", json={"email": "b@example.com", "password": "hunter22", "fullName": "B"})
        assert services.auth.get_user_by_email("b@example.com").unwrap().role.value == "USER"


class TestLogin:
    def test_login_success(self, client, customer):
        resp = login(client, "customer@example.com")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["user"]["id"] == customer.id
        assert body["accessToken"] and body["refreshToken"]

    @pytest.mark.parametrize("email,password", [
        ("customer@example.com", "wrong-password"),
        ("nobody@example.com", PASSWORD),
    ])
    def test_bad_credentials(self, client, customer, email, password):
        resp = login(client, email, password)

        assert resp.status_code == 401
        assert resp.get_json() == {
            "status": "fail",
            "error": "InvalidCredentials",
            "message": "Invalid email or password",
        }

    def test_disabled_user_cannot_login(self, client, services, customer):
        services.auth.set_enabled(customer.id, False).unwrap()

        resp = login(client, "customer@example.com")

        assert resp.status_code == 401
        assert resp.get_json()["error"] == "InvalidCredentials"

    def test_missing_fields(self, client):
        assert client.post("/api/auth/login", json={"email": "x@example.com"}).status_code == 400
        assert client.post("/api/auth/login", data="not json").status_code == 400


# =============================================================================
# REFRESH
# =============================================================================


class TestRefresh:
    def test_refresh_returns_new_pair(self, client, customer):
        tokens = login(client, "customer@example.com").get_json()

        resp = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["accessToken"] and body["refreshToken"]
        me = client.get("/api/auth/me", headers=auth_headers(body["accessToken"]))
        assert me.status_code == 200

    def test_refresh_after_disable_is_rejected(self, client, services, customer):
        """Refresh token issued, user disabled, refresh fails."""
        tokens = login(client, "customer@example.com").get_json()
        services.auth.set_enabled(customer.id, False).unwrap()

        resp = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})

        assert resp.status_code == 401
        body = resp.get_json()
        assert body["error"] == "UserDisabled"
        assert "accessToken" not in body

    def test_refresh_requires_token(self, client):
        resp = client.post("/api/auth/refresh", json={})
        assert resp.status_code == 400

    def test_access_token_cannot_refresh(self, client, customer):
        tokens = login(client, "customer@example.com").get_json()

        resp = client.post("/api/auth/refresh", json={"refreshToken": tokens["accessToken"]})

        assert resp.status_code == 401
        assert resp.get_json()["error"] == "InvalidToken"


# =============================================================================
# GUARD
# =============================================================================


class TestGuard:
    def test_me_returns_profile(self, client, customer, user_headers):
        resp = client.get("/api/auth/me", headers=user_headers)

        assert resp.status_code == 200
        assert resp.get_json() == {
            "id": customer.id,
            "email": "customer@example.com",
            "fullName": "Jane Customer",
            "role": "USER",
            "enabled": True,
        }

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Token abc"}, {"Authorization": "Bearer "}])
    def test_missing_token(self, client, headers):
        resp = client.get("/api/auth/me", headers=headers)

        assert resp.status_code == 401
        assert resp.get_json()["error"] == "NoToken"

    def test_invalid_token(self, client):
        resp = client.get("/api/auth/me", headers=auth_headers("not.a.jwt"))

        assert resp.status_code == 401
        assert resp.get_json()["error"] == "InvalidToken"

    def test_expired_token(self, app, client, services, customer):
        expired = TokenService(
            services.repos.users,
            access_secret=app.config["JWT_SECRET"],
            refresh_secret=app.config["JWT_REFRESH_SECRET"],
            access_ttl=timedelta(seconds=-5),
            refresh_ttl=timedelta(days=1),
        ).issue(customer)

        resp = client.get("/api/auth/me", headers=auth_headers(expired.access_token))

        assert resp.status_code == 401
        assert resp.get_json()["error"] == "TokenExpired"

    def test_admin_route_requires_admin_role(self, client, user_headers):
        resp = client.get("/api/admin/users", headers=user_headers)

        assert resp.status_code == 403
        assert resp.get_json()["error"] == "InsufficientRole"

    @pytest.mark.parametrize("method,path", [
        ("GET", "/api/admin/dashboard/stats"),
        ("GET", "/api/admin/users"),
        ("POST", "/api/admin/products"),
        ("PATCH", "/api/admin/orders/1/status"),
        ("GET", "/api/orders/my-orders"),
        ("POST", "/api/orders"),
        ("POST", "/api/auth/logout"),
    ])
    def test_protected_routes_require_token(self, client, method, path):
        resp = client.open(path, method=method)
        assert resp.status_code == 401

    def test_role_change_applies_after_refresh(self, client, services, customer):
        tokens = login(client, "customer@example.com").get_json()
        services.auth.set_role(customer.id, Role.ADMIN).unwrap()

        assert client.get("/api/admin/users", headers=auth_headers(tokens["accessToken"])).status_code == 403

        refreshed = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]}).get_json()
        assert client.get("/api/admin/users", headers=auth_headers(refreshed["accessToken"])).status_code == 200

    def test_logout(self, client, user_headers):
        resp = client.post("/api/auth/logout", headers=user_headers)

        assert resp.status_code == 200
        assert resp.get_json()["status"] == "success"


# =============================================================================
# APP-LEVEL BEHAVIOR
# =============================================================================


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "RouteNotFound"


def test_cors_headers_only_for_allowed_origins(client):
    allowed = client.get("/health", headers={"Origin": "http://localhost:5173"})
    other = client.get("/health", headers={"Origin": "http://evil.example"})

    assert allowed.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert "Access-Control-Allow-Origin" not in other.headers


def test_unexpected_errors_are_masked(app, client, monkeypatch, services):
    def boom(*args, **kwargs):
        raise RuntimeError("secret detail")

    monkeypatch.setattr(services.catalog, "list_categories", boom)

    resp = client.get("/api/categories")

    assert resp.status_code == 500
    body = resp.get_json()
    assert body == {"status": "error", "message": "Internal server error"}


def test_stack_trace_in_development(app, client, monkeypatch, services):
    app.config["EXPOSE_STACK_TRACES"] = True

    def boom(*args, **kwargs):
        raise RuntimeError("secret detail")

    monkeypatch.setattr(services.catalog, "list_categories", boom)

    body = client.get("/api/categories").get_json()

    assert "RuntimeError" in body["stack"]


def test_registered_user_can_use_token(client):
    body = client.post("/api/auth/register", json={
        "email": "fresh@example.com", "password": "hunter22", "fullName": "Fresh",
    }).get_json()

    resp = client.get("/api/auth/me", headers=auth_headers(body["accessToken"]))

    assert resp.get_json()["email"] == "fresh@example.com"
