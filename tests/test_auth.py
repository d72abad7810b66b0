"""Tests for token handling, the auth service and auth endpoints"""
import time
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from jose import jwt

from app.auth import (
    extract_bearer_token,
    get_current_user,
    get_jwt_issuer,
    user_from_payload,
    verify_token,
)
from app.features.auth.api import get_auth_service
from app.features.auth.service import AuthService, AuthServiceError, username_from_email
from app.main import app
from app.models.tenant import Tenant
from app.models.user import AppUser

JWT_SECRET = "super-secret-jwt-token-with-at-least-32-characters"
STRONG_PASSWORD = "CorrectHorse9!Battery"


def make_token(**claims) -> str:
    payload = {
        "sub": "auth-user-1",
        "email": "chief@station9.org",
        "aud": "authenticated",
        "iss": get_jwt_issuer(),
        "exp": int(time.time()) + 3600,
        "user_metadata": {"stripe_customer_id": "cus_1"},
    }
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


class TestBearerToken:
    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc.def") == "abc.def"
        assert extract_bearer_token("bearer abc.def ") == "abc.def"

    @pytest.mark.parametrize("header", [None, "", "abc.def", "Basic abc", "Bearer  "])
    def test_rejects_bad_headers(self, header):
        with pytest.raises(HTTPException) as exc_info:
            extract_bearer_token(header)

        assert exc_info.value.status_code == 401

    def test_user_from_payload(self):
        user = user_from_payload({"sub": "u1", "email": "a@b.org"}, "tok")

        assert user.id == "u1"
        assert user.email == "a@b.org"
        assert user.user_metadata == {}
        assert user.access_token == "tok"

    def test_payload_without_subject(self):
        with pytest.raises(HTTPException) as exc_info:
            user_from_payload({"email": "a@b.org"})

        assert exc_info.value.detail == "Invalid token: no user ID"


class TestVerifyToken:
    @pytest.fixture(autouse=True)
    def jwt_secret(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_JWT_SECRET", JWT_SECRET)

    async def test_valid_hs256_token(self):
        payload = await verify_token(make_token())

        assert payload["sub"] == "auth-user-1"

    async def test_expired_token(self):
        with pytest.raises(HTTPException) as exc_info:
            await verify_token(make_token(exp=int(time.time()) - 60))

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"

    async def test_wrong_audience(self):
        with pytest.raises(HTTPException) as exc_info:
            await verify_token(make_token(aud="anon"))

        assert exc_info.value.status_code == 401

    async def test_hs256_without_secret(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_JWT_SECRET")

        with pytest.raises(HTTPException) as exc_info:
            await verify_token(make_token())

        assert exc_info.value.status_code == 401

    async def test_current_user_dependency(self):
        token = make_token()

        user = await get_current_user(f"Bearer {token}")

        assert user.id == "auth-user-1"
        assert user.user_metadata == {"stripe_customer_id": "cus_1"}
        assert user.access_token == token


class TestAuthService:
    @pytest.fixture
    def anon(self):
        return MagicMock()

    @pytest.fixture
    def admin(self):
        return MagicMock()

    @pytest.fixture
    def service(self, anon, admin, repos):
        service = AuthService(anon, admin)
        service.repos = repos
        return service

    def test_username_from_email(self):
        assert username_from_email("chief.ruiz@station9.org") == "chief.ruiz"

    async def test_sign_up_creates_tenant_and_admin(self, service, anon, repos):
        anon.auth.sign_up.return_value = SimpleNamespace(
            user=SimpleNamespace(id="auth-1", email="chief@station9.org"),
            session=SimpleNamespace(access_token="at", refresh_token="rt", expires_at=1900000000),
        )
        repos.tenants.create.return_value = Tenant(id=9, name="Station 9", supabase_auth_user_id="auth-1")

        result = await service.sign_up("chief@station9.org", STRONG_PASSWORD, " Station 9 ", "https://x/cb")

        assert result.tenant.id == 9
        assert result.session.access_token == "at"
        assert result.confirmation_pending is False
        credentials = anon.auth.sign_up.call_args.args[0]
        assert credentials["options"] == {"email_redirect_to": "https://x/cb"}
        assert repos.tenants.create.await_args.args[0].name == "Station 9"
        user_row = repos.users.create.await_args.args[0]
        assert user_row.tenant_id == 9
        assert user_row.role == "admin"
        assert user_row.username == "chief"

    async def test_sign_up_without_user_is_pending(self, service, anon, repos):
        anon.auth.sign_up.return_value = SimpleNamespace(user=None, session=None)

        result = await service.sign_up("chief@station9.org", STRONG_PASSWORD, "Station 9")

        assert result.confirmation_pending is True
        repos.tenants.create.assert_not_awaited()

    async def test_weak_password_never_reaches_auth(self, service, anon):
        with pytest.raises(AuthServiceError) as exc_info:
            await service.sign_up("chief@station9.org", "short", "Station 9")

        assert exc_info.value.status_code == 400
        anon.auth.sign_up.assert_not_called()

    async def test_tenant_name_required(self, service):
        with pytest.raises(AuthServiceError) as exc_info:
            await service.sign_up("chief@station9.org", STRONG_PASSWORD, "  ")

        assert exc_info.value.message == "Tenant name is required"

    async def test_user_row_failure(self, service, anon, repos):
        anon.auth.sign_up.return_value = SimpleNamespace(
            user=SimpleNamespace(id="auth-1", email="chief@station9.org"), session=None
        )
        repos.tenants.create.return_value = Tenant(id=9, name="Station 9")
        repos.users.create.side_effect = ValueError("Failed to create record")

        with pytest.raises(AuthServiceError) as exc_info:
            await service.sign_up("chief@station9.org", STRONG_PASSWORD, "Station 9")

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to create user record"

    async def test_sign_in_without_session(self, service, anon):
        anon.auth.sign_in_with_password.return_value = SimpleNamespace(user=None, session=None)

        with pytest.raises(AuthServiceError) as exc_info:
            await service.sign_in("chief@station9.org", "wrong")

        assert exc_info.value.status_code == 401

    async def test_update_password(self, service, admin):
        await service.update_password("auth-1", "chief@station9.org", STRONG_PASSWORD)

        admin.auth.admin.update_user_by_id.assert_called_once_with("auth-1", {"password": STRONG_PASSWORD})

    async def test_get_session(self, service, repos):
        repos.users.find_by_auth_user_id.return_value = AppUser(id=1, tenant_id=9, username="chief")
        repos.tenants.find_by_id.return_value = Tenant(id=9, name="Station 9")

        session = await service.get_session("auth-1", "chief@station9.org")

        assert session.tenant.name == "Station 9"
        repos.tenants.find_by_id.assert_awaited_once_with(9)


class TestEndpoints:
    def test_sign_up_error_body(self, client):
        service = MagicMock()
        service.sign_up = AsyncMock(side_effect=AuthServiceError("Tenant name is required"))
        app.dependency_overrides[get_auth_service] = lambda: service

        response = client.post(
            "/api/auth/signup",
            json={"email": "chief@station9.org", "password": STRONG_PASSWORD, "tenantName": ""},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Tenant name is required"}

    def test_password_validate(self, client):
        response = client.post(
            "/api/password/validate",
            json={"password": STRONG_PASSWORD, "confirm_password": "different"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["is_valid"] is True
        assert body["strength"]["label"] == "Excellent"
        assert body["passwords_match"] is False
        assert body["match_error"] == "Passwords do not match"
        assert body["requirements"][0] == "At least 12 characters long"

    def test_sign_out_uses_caller_token(self, client, auth_user):
        service = MagicMock()
        service.sign_out = AsyncMock()
        app.dependency_overrides[get_auth_service] = lambda: service
        app.dependency_overrides[get_current_user] = lambda: auth_user

        response = client.post("/api/auth/signout")

        assert response.json() == {"success": True}
        service.sign_out.assert_awaited_once_with("access-token-1")
