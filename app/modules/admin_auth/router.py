"""Admin authentication API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.metrics import record_login_outcome
from app.modules.admin_auth.dependencies import get_current_admin
from app.modules.admin_auth.outcomes import LoginRejected, MfaChallenge
from app.modules.admin_auth.schemas import (
    AccessTokenResponse,
    AdminProfileRead,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    MfaDisableRequest,
    MfaEnableRequest,
    MfaRequiredResponse,
    MfaSetupResponse,
    ProfileResponse,
)
from app.modules.admin_auth.service import AdminAuthService, AuthenticatedAdmin, get_admin_auth_service
from app.modules.admin_auth.tokens import IssuedTokens
from app.shared.exceptions import InvalidTokenException, exception_response
from app.shared.request_context import RequestContext, get_request_context

settings = get_settings()
router = APIRouter(prefix="/admin/auth", tags=["admin-auth"])

_REFRESH_COOKIE_PATH = f"{settings.api_prefix}/admin/auth"


def _access_token_ttl_seconds() -> int:
    return settings.access_token_expire_minutes * 60


def _set_refresh_cookie(response: Response, tokens: IssuedTokens) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=tokens.refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        path=_REFRESH_COOKIE_PATH,
        secure=settings.refresh_cookie_secure,
        httponly=True,
        samesite="strict",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path=_REFRESH_COOKIE_PATH,
        secure=settings.refresh_cookie_secure,
        httponly=True,
        samesite="strict",
    )


@router.post("/login", response_model=LoginResponse | MfaRequiredResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    context: RequestContext = Depends(get_request_context),
    service: AdminAuthService = Depends(get_admin_auth_service),
) -> LoginResponse | MfaRequiredResponse | JSONResponse:
    """Sign in by email/password (+ MFA code) and set the refresh cookie."""
    outcome = await service.login(payload, context)

    if isinstance(outcome, LoginRejected):
        record_login_outcome(outcome.reason)
        return exception_response(outcome.to_exception())

    if isinstance(outcome, MfaChallenge):
        record_login_outcome("mfa_required")
        return MfaRequiredResponse()

    record_login_outcome("success")
    _set_refresh_cookie(response, outcome.tokens)
    return LoginResponse(
        access_token=outcome.tokens.access_token,
        expires_in=_access_token_ttl_seconds(),
        admin=AdminProfileRead.from_admin(outcome.admin),
    )


@router.post("/refresh-token", response_model=AccessTokenResponse)
async def refresh_token(
    request: Request,
    response: Response,
    context: RequestContext = Depends(get_request_context),
    service: AdminAuthService = Depends(get_admin_auth_service),
) -> AccessTokenResponse:
    """Rotate the refresh cookie and issue a new access token."""
    presented = request.cookies.get(settings.refresh_cookie_name)
    if not presented:
        raise InvalidTokenException("Refresh token not provided")

    tokens = await service.refresh_tokens(presented, context)
    _set_refresh_cookie(response, tokens)
    return AccessTokenResponse(access_token=tokens.access_token, expires_in=_access_token_ttl_seconds())


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    current: AuthenticatedAdmin = Depends(get_current_admin),
    context: RequestContext = Depends(get_request_context),
    service: AdminAuthService = Depends(get_admin_auth_service),
) -> MessageResponse:
    """Revoke the current refresh token (or every session without one)."""
    await service.logout(current.admin, request.cookies.get(settings.refresh_cookie_name), context)
    _clear_refresh_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current: AuthenticatedAdmin = Depends(get_current_admin)) -> ProfileResponse:
    """Return profile of authenticated admin."""
    return ProfileResponse(admin=AdminProfileRead.from_admin(current.admin))


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    current: AuthenticatedAdmin = Depends(get_current_admin),
    context: RequestContext = Depends(get_request_context),
    service: AdminAuthService = Depends(get_admin_auth_service),
) -> MessageResponse:
    await service.change_password(current.admin, payload.current_password, payload.new_password, context)
    return MessageResponse(message="Password changed successfully")


@router.post("/mfa/setup", response_model=MfaSetupResponse)
async def setup_mfa(
    current: AuthenticatedAdmin = Depends(get_current_admin),
    context: RequestContext = Depends(get_request_context),
    service: AdminAuthService = Depends(get_admin_auth_service),
) -> MfaSetupResponse:
    """Start TOTP enrollment; backup codes are only ever shown here."""
    setup = await service.setup_mfa(current.admin, context)
    return MfaSetupResponse(
        secret=setup.secret,
        qr_code=setup.qr_code,
        otpauth_url=setup.provisioning_uri,
        backup_codes=setup.backup_codes,
    )


@router.post("/mfa/enable", response_model=MessageResponse)
async def enable_mfa(
    payload: MfaEnableRequest,
    current: AuthenticatedAdmin = Depends(get_current_admin),
    context: RequestContext = Depends(get_request_context),
    service: AdminAuthService = Depends(get_admin_auth_service),
) -> MessageResponse:
    await service.enable_mfa(current.admin, payload.code, context)
    return MessageResponse(message="MFA enabled successfully")


@router.post("/mfa/disable", response_model=MessageResponse)
async def disable_mfa(
    payload: MfaDisableRequest,
    current: AuthenticatedAdmin = Depends(get_current_admin),
    context: RequestContext = Depends(get_request_context),
    service: AdminAuthService = Depends(get_admin_auth_service),
) -> MessageResponse:
    await service.disable_mfa(current.admin, payload.password, context)
    return MessageResponse(message="MFA disabled successfully")
