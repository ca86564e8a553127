"""Admin user management schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from app.core.enums import AdminRoleEnum
from app.modules.admin_auth.schemas import (
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    AdminProfileRead,
    check_password_policy,
)
from app.shared.schemas import CamelModel


class AdminUserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: AdminRoleEnum

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_policy(value)


class AdminUserUpdate(CamelModel):
    email: EmailStr | None = None
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: AdminRoleEnum | None = None
    is_active: bool | None = None


class AdminUserRead(CamelModel):
    """Admin account row as listed to other admins."""

    id: UUID
    email: EmailStr
    first_name: str
    last_name: str
    role: AdminRoleEnum
    is_active: bool
    mfa_enabled: bool
    last_login_at: datetime | None
    locked_until: datetime | None
    created_at: datetime
    updated_at: datetime


class AdminUserDetail(AdminProfileRead):
    locked_until: datetime | None
    created_at: datetime
    updated_at: datetime


class TemporaryPasswordResponse(CamelModel):
    temporary_password: str
