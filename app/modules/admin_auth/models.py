"""Admin account and refresh token ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin, CreatedAtMixin, UUIDMixin
from app.core.enums import AdminRoleEnum


class AdminUser(BaseModelMixin, Base):
    """Administrator account."""

    __tablename__ = "admin_users"
    __table_args__ = (
        CheckConstraint("login_attempts >= 0", name="login_attempts_non_negative"),
        CheckConstraint("NOT mfa_enabled OR mfa_secret IS NOT NULL", name="mfa_enabled_requires_secret"),
    )

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    role: Mapped[AdminRoleEnum] = mapped_column(
        SAEnum(AdminRoleEnum, name="admin_role_enum", native_enum=False),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    login_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    locked_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    mfa_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    mfa_secret: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # SHA-256 digests of unused backup codes.
    mfa_backup_codes: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)

    refresh_tokens: Mapped[list["AdminRefreshToken"]] = relationship(
        back_populates="admin",
        cascade="all, delete-orphan",
    )


class AdminRefreshToken(UUIDMixin, CreatedAtMixin, Base):
    """Single-use refresh token, stored as a digest of the issued value."""

    __tablename__ = "admin_refresh_tokens"

    admin_id: Mapped[UUID] = mapped_column(
        ForeignKey("admin_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    admin: Mapped[AdminUser] = relationship(back_populates="refresh_tokens")
