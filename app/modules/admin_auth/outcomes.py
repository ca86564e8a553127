"""Typed login outcomes translated to HTTP responses by the router."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from app.modules.admin_auth.models import AdminUser
from app.modules.admin_auth.tokens import IssuedTokens
from app.shared.exceptions import (
    AccountDisabledException,
    AccountLockedException,
    AppException,
    InvalidCredentialsException,
    InvalidMfaCodeException,
)


class LoginFailureReason(StrEnum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_DISABLED = "account_disabled"
    INVALID_MFA_CODE = "invalid_mfa_code"


@dataclass(frozen=True, slots=True)
class LoginSucceeded:
    admin: AdminUser
    tokens: IssuedTokens


@dataclass(frozen=True, slots=True)
class MfaChallenge:
    """Password accepted but an MFA code is still needed; nothing was issued."""

    admin_id: UUID


@dataclass(frozen=True, slots=True)
class LoginRejected:
    reason: LoginFailureReason
    remaining_minutes: int | None = None

    def to_exception(self) -> AppException:
        if self.reason is LoginFailureReason.ACCOUNT_LOCKED:
            return AccountLockedException(self.remaining_minutes or 1)
        if self.reason is LoginFailureReason.ACCOUNT_DISABLED:
            return AccountDisabledException("Account is disabled")
        if self.reason is LoginFailureReason.INVALID_MFA_CODE:
            return InvalidMfaCodeException("Invalid MFA code")
        return InvalidCredentialsException("Invalid credentials")


LoginOutcome = LoginSucceeded | MfaChallenge | LoginRejected
