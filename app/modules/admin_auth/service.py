"""Admin authentication orchestration: login, refresh, logout, password and MFA flows."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import AdminRoleEnum, AuditActionEnum
from app.core.security import decode_access_token, hash_password, verify_dummy_password, verify_password
from app.modules.admin_auth.lockout import LockoutPolicy
from app.modules.admin_auth.mfa import MfaManager, MfaSetup
from app.modules.admin_auth.models import AdminUser
from app.modules.admin_auth.outcomes import (
    LoginFailureReason,
    LoginOutcome,
    LoginRejected,
    LoginSucceeded,
    MfaChallenge,
)
from app.modules.admin_auth.repository import AdminAuthRepository
from app.modules.admin_auth.schemas import LoginRequest
from app.modules.admin_auth.tokens import IssuedTokens, TokenIssuer
from app.modules.audit.repository import AuditRepository
from app.modules.audit.service import AuditService
from app.shared.exceptions import (
    AccountDisabledException,
    InvalidCredentialsException,
    InvalidTokenException,
    ValidationException,
)
from app.shared.request_context import RequestContext
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass(frozen=True, slots=True)
class AuthenticatedAdmin:
    """Admin resolved from a bearer token; ``role`` comes from the token claims."""

    admin: AdminUser
    role: AdminRoleEnum
    session_id: str | None
    claims: dict[str, Any]


class AdminAuthService:
    """Composes credential, lockout, MFA and token components into the auth flows."""

    def __init__(
        self,
        repository: AdminAuthRepository,
        audit: AuditService,
        *,
        lockout: LockoutPolicy,
        mfa: MfaManager,
        tokens: TokenIssuer,
        now_provider: Callable[[], datetime] = utc_now,
        revoke_sessions_on_password_change: bool = False,
    ) -> None:
        self.repository = repository
        self.audit = audit
        self.lockout = lockout
        self.mfa = mfa
        self.tokens = tokens
        self._now = now_provider
        self.revoke_sessions_on_password_change = revoke_sessions_on_password_change

    async def login(self, payload: LoginRequest, context: RequestContext) -> LoginOutcome:
        """Run the login state machine and return its outcome.

        Rejections are returned rather than raised so the caller can commit the
        lockout counter and audit rows written along the way.
        """
        now = self._now()
        email = payload.email.lower()
        details = {"email": email}

        admin = await self.repository.get_admin_by_email(email)
        if admin is None:
            verify_dummy_password(payload.password)
            await self.audit.record(
                AuditActionEnum.LOGIN_FAILED,
                actor_id=None,
                details={**details, "reason": "unknown_account"},
                context=context,
            )
            return LoginRejected(LoginFailureReason.INVALID_CREDENTIALS)

        if self.lockout.is_locked(admin, now):
            await self.audit.record(
                AuditActionEnum.LOGIN_BLOCKED_LOCKED,
                actor_id=admin.id,
                resource_id=admin.id,
                details=details,
                context=context,
            )
            return LoginRejected(
                LoginFailureReason.ACCOUNT_LOCKED,
                remaining_minutes=self.lockout.remaining_minutes(admin, now),
            )

        if not admin.is_active:
            await self.audit.record(
                AuditActionEnum.LOGIN_BLOCKED_DISABLED,
                actor_id=admin.id,
                resource_id=admin.id,
                details=details,
                context=context,
            )
            return LoginRejected(LoginFailureReason.ACCOUNT_DISABLED)

        if not verify_password(payload.password, admin.password_hash):
            return await self._reject_password(admin, now, details, context)

        if admin.mfa_enabled:
            if not payload.mfa_code:
                await self.audit.record(
                    AuditActionEnum.LOGIN_MFA_REQUIRED,
                    actor_id=admin.id,
                    resource_id=admin.id,
                    details=details,
                    context=context,
                )
                return MfaChallenge(admin_id=admin.id)

            factor = await self.mfa.verify_login_code(admin, payload.mfa_code, now=now)
            if factor is None:
                await self.audit.record(
                    AuditActionEnum.LOGIN_MFA_FAILED,
                    actor_id=admin.id,
                    resource_id=admin.id,
                    details=details,
                    context=context,
                )
                return LoginRejected(LoginFailureReason.INVALID_MFA_CODE)
            if factor == "backup_code":
                await self.audit.record(
                    AuditActionEnum.MFA_BACKUP_CODE_USED,
                    actor_id=admin.id,
                    resource_id=admin.id,
                    context=context,
                )

        await self.repository.record_successful_login(admin.id, now)
        issued = await self.tokens.issue(admin, now)
        await self.audit.record(
            AuditActionEnum.LOGIN_SUCCESS,
            actor_id=admin.id,
            resource_id=admin.id,
            details=details,
            context=context,
        )
        logger.info("Admin %s logged in", admin.id)
        return LoginSucceeded(admin=admin, tokens=issued)

    async def _reject_password(
        self,
        admin: AdminUser,
        now: datetime,
        details: dict[str, str],
        context: RequestContext,
    ) -> LoginRejected:
        failure = await self.lockout.register_failure(admin.id, now)
        if failure.engaged:
            await self.audit.record(
                AuditActionEnum.ACCOUNT_LOCKED,
                actor_id=admin.id,
                resource_id=admin.id,
                details={**details, "reason": "max_login_attempts"},
                context=context,
            )
        else:
            await self.audit.record(
                AuditActionEnum.LOGIN_FAILED,
                actor_id=admin.id,
                resource_id=admin.id,
                details={**details, "reason": "invalid_password"},
                context=context,
            )

        if failure.locked:
            return LoginRejected(
                LoginFailureReason.ACCOUNT_LOCKED,
                remaining_minutes=failure.remaining_minutes,
            )
        return LoginRejected(LoginFailureReason.INVALID_CREDENTIALS)

    async def refresh_tokens(self, refresh_token: str, context: RequestContext) -> IssuedTokens:
        """Rotate a refresh token: consume it and issue a fresh pair in one transaction."""
        now = self._now()
        admin_id = await self.tokens.consume(refresh_token, now)

        admin = await self.repository.get_admin_by_id(admin_id)
        if admin is None or not admin.is_active:
            raise AccountDisabledException("Account is disabled")

        issued = await self.tokens.issue(admin, now)
        await self.audit.record(
            AuditActionEnum.TOKEN_REFRESHED,
            actor_id=admin.id,
            resource_id=admin.id,
            context=context,
        )
        return issued

    async def logout(self, admin: AdminUser, refresh_token: str | None, context: RequestContext) -> int:
        """Revoke the presented refresh token, or all of them when none is presented."""
        revoked = await self.tokens.revoke(admin.id, refresh_token)
        await self.audit.record(
            AuditActionEnum.LOGOUT,
            actor_id=admin.id,
            resource_id=admin.id,
            details={"scope": "session" if refresh_token else "all_sessions", "revoked": revoked},
            context=context,
        )
        return revoked

    async def change_password(
        self,
        admin: AdminUser,
        current_password: str,
        new_password: str,
        context: RequestContext,
    ) -> None:
        if not verify_password(current_password, admin.password_hash):
            raise InvalidCredentialsException("Invalid current password")
        if current_password == new_password:
            raise ValidationException("New password must differ from the current password")

        await self.repository.update_password_hash(admin.id, hash_password(new_password))

        revoked = 0
        if self.revoke_sessions_on_password_change:
            revoked = await self.tokens.revoke(admin.id, None)
        await self.audit.record(
            AuditActionEnum.PASSWORD_CHANGED,
            actor_id=admin.id,
            resource_id=admin.id,
            details={"sessionsRevoked": revoked},
            context=context,
        )

    async def setup_mfa(self, admin: AdminUser, context: RequestContext) -> MfaSetup:
        setup = await self.mfa.begin_setup(admin)
        await self.audit.record(
            AuditActionEnum.MFA_SETUP_INITIATED,
            actor_id=admin.id,
            resource_id=admin.id,
            context=context,
        )
        return setup

    async def enable_mfa(self, admin: AdminUser, code: str, context: RequestContext) -> None:
        await self.mfa.confirm(admin, code, now=self._now())
        await self.audit.record(
            AuditActionEnum.MFA_ENABLED,
            actor_id=admin.id,
            resource_id=admin.id,
            context=context,
        )

    async def disable_mfa(self, admin: AdminUser, password: str, context: RequestContext) -> None:
        if not verify_password(password, admin.password_hash):
            raise InvalidCredentialsException("Invalid password")

        await self.mfa.disable(admin)
        await self.audit.record(
            AuditActionEnum.MFA_DISABLED,
            actor_id=admin.id,
            resource_id=admin.id,
            context=context,
        )

    async def authenticate(self, access_token: str) -> AuthenticatedAdmin:
        """Resolve the admin behind an access token."""
        claims = decode_access_token(access_token)
        try:
            admin_id = UUID(str(claims["sub"]))
            role = AdminRoleEnum(claims.get("role"))
        except ValueError as exc:
            raise InvalidTokenException("Invalid token payload") from exc

        admin = await self.repository.get_admin_by_id(admin_id)
        if admin is None or not admin.is_active:
            raise InvalidTokenException("Invalid token")

        return AuthenticatedAdmin(admin=admin, role=role, session_id=claims.get("sid"), claims=claims)


def build_admin_auth_service(session: AsyncSession) -> AdminAuthService:
    """Wire the auth components around one database session."""
    repository = AdminAuthRepository(session)
    return AdminAuthService(
        repository,
        AuditService(AuditRepository(session)),
        lockout=LockoutPolicy(
            repository,
            max_attempts=settings.login_max_attempts,
            lockout_duration=timedelta(minutes=settings.login_lockout_minutes),
        ),
        mfa=MfaManager(
            repository,
            issuer=settings.mfa_issuer,
            valid_window=settings.mfa_valid_window,
            backup_code_count=settings.mfa_backup_code_count,
        ),
        tokens=TokenIssuer(
            repository,
            refresh_token_ttl=timedelta(days=settings.refresh_token_expire_days),
        ),
        revoke_sessions_on_password_change=settings.revoke_sessions_on_password_change,
    )


async def get_admin_auth_service(session: AsyncSession = Depends(get_db_session)) -> AdminAuthService:
    """Dependency to provide admin auth service."""
    return build_admin_auth_service(session)
