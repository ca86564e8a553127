"""Admin authentication schemas."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from app.core.enums import AdminRoleEnum
from app.core.permissions import get_role_permissions
from app.modules.admin_auth.models import AdminUser
from app.shared.schemas import CamelModel

PASSWORD_MIN_LENGTH = 8
# bcrypt ignores input past 72 bytes.
PASSWORD_MAX_LENGTH = 72

_PASSWORD_CLASSES = (
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"\d"), "one number"),
    (re.compile(r"[^A-Za-z\d]"), "one special character"),
)


def check_password_policy(value: str) -> str:
    """Reject passwords missing a character class."""
    missing = [label for pattern, label in _PASSWORD_CLASSES if not pattern.search(value)]
    if missing:
        raise ValueError(f"Password must contain at least {', '.join(missing)}")
    return value


class PermissionRead(CamelModel):
    resource: str
    actions: list[str]


class AdminProfileRead(CamelModel):
    """Admin identity exposed to the frontend."""

    id: UUID
    email: EmailStr
    first_name: str
    last_name: str
    role: AdminRoleEnum
    is_active: bool
    mfa_enabled: bool
    last_login_at: datetime | None
    permissions: list[PermissionRead]

    @classmethod
    def from_admin(cls, admin: AdminUser) -> "AdminProfileRead":
        permissions = [
            PermissionRead(resource=permission.resource, actions=sorted(permission.actions))
            for permission in get_role_permissions(AdminRoleEnum(admin.role))
        ]
        return cls(
            id=admin.id,
            email=admin.email,
            first_name=admin.first_name,
            last_name=admin.last_name,
            role=admin.role,
            is_active=admin.is_active,
            mfa_enabled=admin.mfa_enabled,
            last_login_at=admin.last_login_at,
            permissions=permissions,
        )


class LoginRequest(CamelModel):
    """Credentials for login, with an optional TOTP or backup code."""

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    mfa_code: str | None = Field(default=None, min_length=6, max_length=16)


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    admin: AdminProfileRead


class MfaRequiredResponse(CamelModel):
    status: Literal["mfa_required"] = "mfa_required"
    message: str = "MFA code required"


class AccessTokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ProfileResponse(CamelModel):
    admin: AdminProfileRead


class MessageResponse(CamelModel):
    status: str = "success"
    message: str


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return check_password_policy(value)


class MfaSetupResponse(CamelModel):
    secret: str
    qr_code: str
    otpauth_url: str
    backup_codes: list[str]


class MfaEnableRequest(CamelModel):
    code: str = Field(pattern=r"^\d{6}$")


class MfaDisableRequest(CamelModel):
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)
