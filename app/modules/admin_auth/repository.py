"""Admin authentication repository layer.

Every counter and token mutation is a single conditional UPDATE/DELETE so that
concurrent requests for the same account cannot lose updates.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import String, case, delete, literal, null, or_, select, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.admin_auth.models import AdminRefreshToken, AdminUser


@dataclass(frozen=True, slots=True)
class FailedLoginUpdate:
    """Counter state after a failed password check was recorded."""

    login_attempts: int
    locked_until: datetime | None


class AdminAuthRepository:
    """DB operations for admin authentication."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_admin_by_email(self, email: str) -> AdminUser | None:
        stmt = select(AdminUser).where(AdminUser.email == email)
        return await self.session.scalar(stmt)

    async def get_admin_by_id(self, admin_id: UUID) -> AdminUser | None:
        stmt = select(AdminUser).where(AdminUser.id == admin_id)
        return await self.session.scalar(stmt)

    async def register_failed_login(
        self,
        admin_id: UUID,
        *,
        max_attempts: int,
        lock_until: datetime,
        now: datetime,
    ) -> FailedLoginUpdate | None:
        """Increment the failure counter, engaging the lock when it reaches ``max_attempts``.

        Returns None when the account became locked by a concurrent request.
        """
        next_attempts = AdminUser.login_attempts + 1
        lock_engaged = next_attempts >= max_attempts
        stmt = (
            update(AdminUser)
            .where(
                AdminUser.id == admin_id,
                or_(AdminUser.locked_until.is_(None), AdminUser.locked_until <= now),
            )
            .values(
                login_attempts=case((lock_engaged, 0), else_=next_attempts),
                locked_until=case((lock_engaged, lock_until), else_=null()),
            )
            .returning(AdminUser.login_attempts, AdminUser.locked_until)
        )
        row = (await self.session.execute(stmt)).one_or_none()
        if row is None:
            return None
        return FailedLoginUpdate(login_attempts=row.login_attempts, locked_until=row.locked_until)

    async def record_successful_login(self, admin_id: UUID, now: datetime) -> None:
        stmt = (
            update(AdminUser)
            .where(AdminUser.id == admin_id)
            .values(login_attempts=0, locked_until=None, last_login_at=now)
        )
        await self.session.execute(stmt)

    async def clear_lockout(self, admin_id: UUID) -> bool:
        stmt = (
            update(AdminUser)
            .where(AdminUser.id == admin_id)
            .values(login_attempts=0, locked_until=None)
            .returning(AdminUser.id)
        )
        return (await self.session.execute(stmt)).one_or_none() is not None

    async def update_password_hash(self, admin_id: UUID, password_hash: str) -> None:
        stmt = (
            update(AdminUser)
            .where(AdminUser.id == admin_id)
            .values(password_hash=password_hash)
        )
        await self.session.execute(stmt)

    async def store_pending_mfa(
        self,
        admin_id: UUID,
        secret: str,
        backup_code_hashes: list[str],
    ) -> bool:
        """Persist a new secret unless MFA is already enabled."""
        stmt = (
            update(AdminUser)
            .where(AdminUser.id == admin_id, AdminUser.mfa_enabled.is_(False))
            .values(mfa_secret=secret, mfa_backup_codes=backup_code_hashes)
            .returning(AdminUser.id)
        )
        return (await self.session.execute(stmt)).one_or_none() is not None

    async def activate_mfa(self, admin_id: UUID, secret: str) -> bool:
        """Enable MFA only if the pending secret is still the one that was verified."""
        stmt = (
            update(AdminUser)
            .where(
                AdminUser.id == admin_id,
                AdminUser.mfa_secret == secret,
                AdminUser.mfa_enabled.is_(False),
            )
            .values(mfa_enabled=True)
            .returning(AdminUser.id)
        )
        return (await self.session.execute(stmt)).one_or_none() is not None

    async def clear_mfa(self, admin_id: UUID) -> None:
        stmt = (
            update(AdminUser)
            .where(AdminUser.id == admin_id)
            .values(mfa_enabled=False, mfa_secret=None, mfa_backup_codes=None)
        )
        await self.session.execute(stmt)

    async def consume_backup_code(self, admin_id: UUID, code_hash: str) -> bool:
        """Remove one backup code digest; False if it was not present."""
        code_param = literal(code_hash, type_=String)
        stmt = (
            update(AdminUser)
            .where(
                AdminUser.id == admin_id,
                AdminUser.mfa_backup_codes.has_key(code_param),
            )
            .values(mfa_backup_codes=AdminUser.mfa_backup_codes.op("-", return_type=JSONB)(code_param))
            .returning(AdminUser.id)
        )
        return (await self.session.execute(stmt)).one_or_none() is not None

    async def create_refresh_token(
        self,
        admin_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> AdminRefreshToken:
        refresh_token = AdminRefreshToken(admin_id=admin_id, token_hash=token_hash, expires_at=expires_at)
        self.session.add(refresh_token)
        await self.session.flush()
        return refresh_token

    async def consume_refresh_token(self, token_hash: str, now: datetime) -> UUID | None:
        """Delete an unexpired token and return its owner; at most one caller wins."""
        stmt = (
            delete(AdminRefreshToken)
            .where(
                AdminRefreshToken.token_hash == token_hash,
                AdminRefreshToken.expires_at > now,
            )
            .returning(AdminRefreshToken.admin_id)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def delete_refresh_token(self, admin_id: UUID, token_hash: str) -> int:
        stmt = delete(AdminRefreshToken).where(
            AdminRefreshToken.admin_id == admin_id,
            AdminRefreshToken.token_hash == token_hash,
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_refresh_tokens_for_admin(self, admin_id: UUID) -> int:
        stmt = delete(AdminRefreshToken).where(AdminRefreshToken.admin_id == admin_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
