"""Admin user management business logic."""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import AuditActionEnum
from app.core.security import hash_password
from app.modules.admin_auth.models import AdminUser
from app.modules.admin_auth.schemas import AdminProfileRead
from app.modules.admin_auth.service import AdminAuthService, build_admin_auth_service
from app.modules.admin_users.repository import AdminUserFilters, AdminUserRepository
from app.modules.admin_users.schemas import AdminUserCreate, AdminUserDetail, AdminUserUpdate
from app.modules.audit.schemas import AdminActivityRead
from app.modules.audit.service import ADMIN_USERS_RESOURCE
from app.shared.exceptions import ConflictException, NotFoundException, ValidationException
from app.shared.request_context import RequestContext
from app.shared.utils import utc_now

TEMP_PASSWORD_LENGTH = 12
_TEMP_PASSWORD_SPECIALS = "!@#$%^&*"
_TEMP_PASSWORD_ALPHABET = string.ascii_letters + string.digits + _TEMP_PASSWORD_SPECIALS


def generate_temporary_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    """Random password that satisfies the password policy."""
    required = [
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.digits),
        secrets.choice(_TEMP_PASSWORD_SPECIALS),
    ]
    rest = [secrets.choice(_TEMP_PASSWORD_ALPHABET) for _ in range(length - len(required))]
    chars = required + rest
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


class AdminUserService:
    """Create, update, deactivate and unlock admin accounts."""

    def __init__(
        self,
        repository: AdminUserRepository,
        auth: AdminAuthService,
        now_provider: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.auth = auth
        self.audit = auth.audit
        self._now = now_provider

    async def _get_or_404(self, admin_id: UUID) -> AdminUser:
        admin = await self.repository.get_by_id(admin_id)
        if admin is None:
            raise NotFoundException("Admin user not found")
        return admin

    async def list_admins(
        self,
        filters: AdminUserFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[AdminUser], int]:
        return await self.repository.list_admins(filters, limit=limit, offset=offset)

    async def get_admin(self, admin_id: UUID) -> AdminUserDetail:
        admin = await self._get_or_404(admin_id)
        return AdminUserDetail(
            **AdminProfileRead.from_admin(admin).model_dump(),
            locked_until=admin.locked_until,
            created_at=admin.created_at,
            updated_at=admin.updated_at,
        )

    async def create_admin(
        self,
        payload: AdminUserCreate,
        actor_id: UUID,
        context: RequestContext,
    ) -> AdminUser:
        email = payload.email.lower()
        if await self.repository.get_by_email(email) is not None:
            raise ConflictException("Email already in use")

        admin = await self.repository.create(
            email=email,
            password_hash=hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            role=payload.role,
        )
        await self.audit.record(
            AuditActionEnum.ADMIN_USER_CREATED,
            actor_id=actor_id,
            resource_type=ADMIN_USERS_RESOURCE,
            resource_id=admin.id,
            details={"email": admin.email, "role": str(admin.role)},
            context=context,
        )
        return admin

    async def update_admin(
        self,
        admin_id: UUID,
        payload: AdminUserUpdate,
        actor_id: UUID,
        context: RequestContext,
    ) -> AdminUser:
        admin = await self._get_or_404(admin_id)
        changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}

        if "email" in changes:
            changes["email"] = changes["email"].lower()
            if changes["email"] != admin.email and await self.repository.get_by_email(changes["email"]):
                raise ConflictException("Email already in use")
        if changes.get("is_active") is False and admin_id == actor_id:
            raise ValidationException("Cannot deactivate your own account")

        for field_name, value in changes.items():
            setattr(admin, field_name, value)
        await self.repository.save(admin)

        if changes.get("is_active") is False:
            await self.auth.tokens.revoke(admin.id, None)

        await self.audit.record(
            AuditActionEnum.ADMIN_USER_UPDATED,
            actor_id=actor_id,
            resource_type=ADMIN_USERS_RESOURCE,
            resource_id=admin.id,
            details={"changes": {key: str(value) for key, value in changes.items()}},
            context=context,
        )
        return admin

    async def deactivate_admin(self, admin_id: UUID, actor_id: UUID, context: RequestContext) -> None:
        """Soft-delete an account and end all of its sessions."""
        if admin_id == actor_id:
            raise ValidationException("Cannot delete your own account")
        admin = await self._get_or_404(admin_id)

        admin.is_active = False
        await self.repository.save(admin)
        revoked = await self.auth.tokens.revoke(admin.id, None)

        await self.audit.record(
            AuditActionEnum.ADMIN_USER_DEACTIVATED,
            actor_id=actor_id,
            resource_type=ADMIN_USERS_RESOURCE,
            resource_id=admin.id,
            details={"email": admin.email, "sessionsRevoked": revoked},
            context=context,
        )

    async def reset_password(self, admin_id: UUID, actor_id: UUID, context: RequestContext) -> str:
        """Replace the password with a generated one, returned once to the caller."""
        admin = await self._get_or_404(admin_id)

        temporary_password = generate_temporary_password()
        admin.password_hash = hash_password(temporary_password)
        await self.repository.save(admin)
        await self.auth.tokens.revoke(admin.id, None)

        await self.audit.record(
            AuditActionEnum.ADMIN_PASSWORD_RESET,
            actor_id=actor_id,
            resource_type=ADMIN_USERS_RESOURCE,
            resource_id=admin.id,
            context=context,
        )
        return temporary_password

    async def unlock_admin(self, admin_id: UUID, actor_id: UUID, context: RequestContext) -> None:
        admin = await self._get_or_404(admin_id)
        await self.auth.lockout.unlock(admin.id)
        await self.audit.record(
            AuditActionEnum.ADMIN_USER_UNLOCKED,
            actor_id=actor_id,
            resource_type=ADMIN_USERS_RESOURCE,
            resource_id=admin.id,
            context=context,
        )

    async def activity(self, admin_id: UUID, days: int) -> AdminActivityRead:
        await self._get_or_404(admin_id)
        return await self.audit.actor_activity(admin_id, days=days, now=self._now())


async def get_admin_user_service(session: AsyncSession = Depends(get_db_session)) -> AdminUserService:
    """Dependency provider for admin user service."""
    return AdminUserService(AdminUserRepository(session), build_admin_auth_service(session))
