from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from app.core.enums import AdminRoleEnum, AuditActionEnum
from app.main import app
from app.modules.admin_auth.service import get_admin_auth_service
from app.modules.audit.service import get_audit_service
from conftest import DEFAULT_PASSWORD

REFRESH_COOKIE = "adminRefreshToken"


@pytest_asyncio.fixture()
async def api_client(auth_service) -> AsyncIterator[httpx.AsyncClient]:
    app.dependency_overrides[get_admin_auth_service] = lambda: auth_service
    app.dependency_overrides[get_audit_service] = lambda: auth_service.audit
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="https://testserver") as client:
        yield client
    app.dependency_overrides.clear()


async def _login(client: httpx.AsyncClient, email: str, password: str = DEFAULT_PASSWORD) -> httpx.Response:
    return await client.post("/api/admin/auth/login", json={"email": email, "password": password})


def _bearer(response: httpx.Response) -> dict[str, str]:
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.mark.asyncio
async def test_login_returns_access_token_and_sets_refresh_cookie(api_client, admin) -> None:
    response = await _login(api_client, admin.email)

    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["expiresIn"] == 3600
    assert body["admin"]["email"] == admin.email
    assert body["admin"]["role"] == "SUPER_ADMIN"
    assert {item["resource"] for item in body["admin"]["permissions"]} >= {"admin_users", "audit_logs"}
    assert "refreshToken" not in body

    set_cookie = response.headers["set-cookie"].lower()
    assert f"{REFRESH_COOKIE.lower()}=" in set_cookie
    assert "httponly" in set_cookie
    assert "samesite=strict" in set_cookie
    assert "path=/api/admin/auth" in set_cookie
    assert "secure" in set_cookie


@pytest.mark.asyncio
async def test_login_with_mfa_enabled_asks_for_code(api_client, admin) -> None:
    admin.mfa_enabled = True
    admin.mfa_secret = "JBSWY3DPEHPK3PXP"

    response = await _login(api_client, admin.email)

    assert response.status_code == 200
    assert response.json() == {"status": "mfa_required", "message": "MFA code required"}
    assert REFRESH_COOKIE not in response.cookies


@pytest.mark.asyncio
async def test_wrong_password_returns_error_envelope(api_client, admin) -> None:
    response = await _login(api_client, admin.email, "Wr0ng!Pass")

    assert response.status_code == 401
    assert response.json() == {"error": {"code": "invalid_credentials", "message": "Invalid credentials"}}


@pytest.mark.asyncio
async def test_repeated_failures_return_423_with_retry_after(api_client, admin, audit_repository) -> None:
    for _ in range(4):
        await _login(api_client, admin.email, "Wr0ng!Pass")

    response = await _login(api_client, admin.email, "Wr0ng!Pass")

    assert response.status_code == 423
    assert response.headers["retry-after"] == "1800"
    assert response.json()["error"] == {
        "code": "account_locked",
        "message": "Account locked. Try again in 30 minutes",
    }
    assert audit_repository.actions()[-1] == AuditActionEnum.ACCOUNT_LOCKED


@pytest.mark.asyncio
async def test_malformed_login_body_is_rejected_before_lookup(api_client, audit_repository) -> None:
    response = await api_client.post("/api/admin/auth/login", json={"email": "not-an-email", "password": "x"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"
    assert audit_repository.logs == []


@pytest.mark.asyncio
async def test_profile_requires_bearer_token(api_client) -> None:
    response = await api_client.get("/api/admin/auth/profile")

    assert response.status_code == 401
    assert response.json()["error"] == {"code": "invalid_token", "message": "No token provided"}


@pytest.mark.asyncio
async def test_profile_returns_current_admin(api_client, admin) -> None:
    login = await _login(api_client, admin.email)

    response = await api_client.get("/api/admin/auth/profile", headers=_bearer(login))

    assert response.status_code == 200
    assert response.json()["admin"]["id"] == str(admin.id)
    assert response.json()["admin"]["mfaEnabled"] is False


@pytest.mark.asyncio
async def test_refresh_rotates_cookie(api_client, admin) -> None:
    login = await _login(api_client, admin.email)
    original = login.cookies[REFRESH_COOKIE]

    response = await api_client.post("/api/admin/auth/refresh-token")

    assert response.status_code == 200
    assert response.json()["accessToken"]
    assert response.cookies[REFRESH_COOKIE] != original

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="https://testserver") as other_client:
        replay = await other_client.post(
            "/api/admin/auth/refresh-token",
            headers={"Cookie": f"{REFRESH_COOKIE}={original}"},
        )
    assert replay.status_code == 401


@pytest.mark.asyncio
async def test_refresh_without_cookie_is_rejected(api_client) -> None:
    response = await api_client.post("/api/admin/auth/refresh-token")

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Refresh token not provided"


@pytest.mark.asyncio
async def test_logout_revokes_session_and_clears_cookie(api_client, admin, auth_store) -> None:
    login = await _login(api_client, admin.email)

    response = await api_client.post("/api/admin/auth/logout", headers=_bearer(login))

    assert response.status_code == 200
    assert response.json() == {"status": "success", "message": "Logged out successfully"}
    assert auth_store.tokens_of(admin.id) == 0
    assert 'max-age=0' in response.headers["set-cookie"].lower()


@pytest.mark.asyncio
async def test_change_password_enforces_policy(api_client, admin) -> None:
    login = await _login(api_client, admin.email)

    response = await api_client.post(
        "/api/admin/auth/change-password",
        headers=_bearer(login),
        json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "alllowercase1"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


@pytest.mark.asyncio
async def test_permission_denial_is_audited_and_committed(api_client, admin, audit_repository) -> None:
    admin.role = AdminRoleEnum.CUSTOMER_SERVICE
    login = await _login(api_client, admin.email)

    response = await api_client.get("/api/admin/audit-logs", headers=_bearer(login))

    assert response.status_code == 403
    assert response.json()["error"] == {"code": "forbidden", "message": "Insufficient permissions"}
    denial = audit_repository.logs[-1]
    assert denial.action == AuditActionEnum.UNAUTHORIZED_ACCESS_ATTEMPT
    assert denial.resource_type == "audit_logs"
    assert denial.details == {"action": "read", "role": "CUSTOMER_SERVICE"}
    assert audit_repository.commits == 1


@pytest.mark.asyncio
async def test_super_admin_only_route_rejects_other_roles(api_client, admin) -> None:
    admin.role = AdminRoleEnum.OPERATIONS_MANAGER
    login = await _login(api_client, admin.email)

    response = await api_client.post(
        f"/api/admin/users/{admin.id}/unlock",
        headers=_bearer(login),
    )

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Super Admin access required"
