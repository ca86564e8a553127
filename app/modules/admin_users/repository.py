"""Admin user management repository layer."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import AdminRoleEnum
from app.modules.admin_auth.models import AdminUser


@dataclass(frozen=True, slots=True)
class AdminUserFilters:
    role: AdminRoleEnum | None = None
    is_active: bool | None = None
    search: str | None = None


class AdminUserRepository:
    """DB operations for managing admin accounts."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, admin_id: UUID) -> AdminUser | None:
        return await self.session.get(AdminUser, admin_id)

    async def get_by_email(self, email: str) -> AdminUser | None:
        stmt = select(AdminUser).where(AdminUser.email == email)
        return await self.session.scalar(stmt)

    async def create(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: AdminRoleEnum,
    ) -> AdminUser:
        admin = AdminUser(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=True,
            login_attempts=0,
            mfa_enabled=False,
        )
        self.session.add(admin)
        await self.session.flush()
        return admin

    async def save(self, admin: AdminUser) -> AdminUser:
        await self.session.flush()
        return admin

    async def list_admins(
        self,
        filters: AdminUserFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[AdminUser], int]:
        base_stmt: Select[tuple[AdminUser]] = select(AdminUser)
        if filters.role is not None:
            base_stmt = base_stmt.where(AdminUser.role == filters.role)
        if filters.is_active is not None:
            base_stmt = base_stmt.where(AdminUser.is_active.is_(filters.is_active))
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            base_stmt = base_stmt.where(
                or_(
                    AdminUser.email.ilike(pattern),
                    AdminUser.first_name.ilike(pattern),
                    AdminUser.last_name.ilike(pattern),
                ),
            )

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(AdminUser.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return list(items), total
