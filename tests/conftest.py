from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-admin-auth")
os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402

from app.core.enums import AdminRoleEnum  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.modules.admin_auth.lockout import LockoutPolicy  # noqa: E402
from app.modules.admin_auth.mfa import MfaManager  # noqa: E402
from app.modules.admin_auth.repository import FailedLoginUpdate  # noqa: E402
from app.modules.admin_auth.service import AdminAuthService  # noqa: E402
from app.modules.admin_auth.tokens import TokenIssuer  # noqa: E402
from app.modules.audit.service import AuditService  # noqa: E402
from app.shared.utils import ensure_utc, utc_now  # noqa: E402

DEFAULT_PASSWORD = "Str0ng!Pass"


@dataclass
class FakeAdmin:
    email: str
    password_hash: str
    role: AdminRoleEnum = AdminRoleEnum.SUPER_ADMIN
    first_name: str = "Ada"
    last_name: str = "Admin"
    id: UUID = field(default_factory=uuid4)
    is_active: bool = True
    last_login_at: datetime | None = None
    login_attempts: int = 0
    locked_until: datetime | None = None
    mfa_enabled: bool = False
    mfa_secret: str | None = None
    mfa_backup_codes: list[str] | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


class Clock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeAuthStore:
    """In-memory stand-in for AdminAuthRepository.

    Each mutation runs without awaiting in between, like the single-statement
    updates of the real repository.
    """

    def __init__(self) -> None:
        self.admins: dict[UUID, FakeAdmin] = {}
        self.refresh_tokens: dict[str, tuple[UUID, datetime]] = {}

    def add(self, admin: FakeAdmin) -> FakeAdmin:
        self.admins[admin.id] = admin
        return admin

    async def get_admin_by_email(self, email: str) -> FakeAdmin | None:
        return next((admin for admin in self.admins.values() if admin.email == email), None)

    async def get_admin_by_id(self, admin_id: UUID) -> FakeAdmin | None:
        return self.admins.get(admin_id)

    async def register_failed_login(
        self,
        admin_id: UUID,
        *,
        max_attempts: int,
        lock_until: datetime,
        now: datetime,
    ) -> FailedLoginUpdate | None:
        await asyncio.sleep(0)
        admin = self.admins[admin_id]
        if admin.locked_until is not None and ensure_utc(admin.locked_until) > now:
            return None
        attempts = admin.login_attempts + 1
        if attempts >= max_attempts:
            admin.login_attempts = 0
            admin.locked_until = lock_until
        else:
            admin.login_attempts = attempts
            admin.locked_until = None
        return FailedLoginUpdate(login_attempts=admin.login_attempts, locked_until=admin.locked_until)

    async def record_successful_login(self, admin_id: UUID, now: datetime) -> None:
        admin = self.admins[admin_id]
        admin.login_attempts = 0
        admin.locked_until = None
        admin.last_login_at = now

    async def clear_lockout(self, admin_id: UUID) -> bool:
        admin = self.admins.get(admin_id)
        if admin is None:
            return False
        admin.login_attempts = 0
        admin.locked_until = None
        return True

    async def update_password_hash(self, admin_id: UUID, password_hash: str) -> None:
        self.admins[admin_id].password_hash = password_hash

    async def store_pending_mfa(self, admin_id: UUID, secret: str, backup_code_hashes: list[str]) -> bool:
        admin = self.admins[admin_id]
        if admin.mfa_enabled:
            return False
        admin.mfa_secret = secret
        admin.mfa_backup_codes = list(backup_code_hashes)
        return True

    async def activate_mfa(self, admin_id: UUID, secret: str) -> bool:
        admin = self.admins[admin_id]
        if admin.mfa_enabled or admin.mfa_secret != secret:
            return False
        admin.mfa_enabled = True
        return True

    async def clear_mfa(self, admin_id: UUID) -> None:
        admin = self.admins[admin_id]
        admin.mfa_enabled = False
        admin.mfa_secret = None
        admin.mfa_backup_codes = None

    async def consume_backup_code(self, admin_id: UUID, code_hash: str) -> bool:
        await asyncio.sleep(0)
        admin = self.admins[admin_id]
        if not admin.mfa_backup_codes or code_hash not in admin.mfa_backup_codes:
            return False
        admin.mfa_backup_codes = [item for item in admin.mfa_backup_codes if item != code_hash]
        return True

    async def create_refresh_token(self, admin_id: UUID, token_hash: str, expires_at: datetime) -> None:
        self.refresh_tokens[token_hash] = (admin_id, expires_at)

    async def consume_refresh_token(self, token_hash: str, now: datetime) -> UUID | None:
        await asyncio.sleep(0)
        record = self.refresh_tokens.get(token_hash)
        if record is None or record[1] <= now:
            return None
        del self.refresh_tokens[token_hash]
        return record[0]

    async def delete_refresh_token(self, admin_id: UUID, token_hash: str) -> int:
        record = self.refresh_tokens.get(token_hash)
        if record is None or record[0] != admin_id:
            return 0
        del self.refresh_tokens[token_hash]
        return 1

    async def delete_refresh_tokens_for_admin(self, admin_id: UUID) -> int:
        owned = [key for key, (owner, _) in self.refresh_tokens.items() if owner == admin_id]
        for key in owned:
            del self.refresh_tokens[key]
        return len(owned)

    def tokens_of(self, admin_id: UUID) -> int:
        return sum(1 for owner, _ in self.refresh_tokens.values() if owner == admin_id)


class FakeAuditRepository:
    def __init__(self) -> None:
        self.logs: list[SimpleNamespace] = []
        self.commits = 0

    async def create_audit_log(
        self,
        actor_id: UUID | None,
        action: str,
        resource_type: str,
        resource_id: str | None,
        details: dict,
        ip_address: str | None,
        user_agent: str | None,
    ) -> SimpleNamespace:
        log = SimpleNamespace(
            id=uuid4(),
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=utc_now(),
        )
        self.logs.append(log)
        return log

    async def commit(self) -> None:
        self.commits += 1

    async def count_actor_actions(self, actor_id: UUID, since: datetime) -> dict[str, int]:
        counts: dict[str, int] = {}
        for log in self.logs:
            if log.actor_id == actor_id and log.created_at >= since:
                counts[log.action] = counts.get(log.action, 0) + 1
        return counts

    async def list_actor_activity(self, actor_id: UUID, since: datetime, limit: int) -> list[SimpleNamespace]:
        matching = [log for log in self.logs if log.actor_id == actor_id and log.created_at >= since]
        return sorted(matching, key=lambda log: log.created_at, reverse=True)[:limit]

    def actions(self) -> list[str]:
        return [log.action for log in self.logs]


def build_auth_service(
    store: FakeAuthStore,
    audit_repository: FakeAuditRepository,
    clock: Clock,
    *,
    revoke_sessions_on_password_change: bool = False,
) -> AdminAuthService:
    return AdminAuthService(
        store,
        AuditService(audit_repository),
        lockout=LockoutPolicy(store, max_attempts=5, lockout_duration=timedelta(minutes=30)),
        mfa=MfaManager(store, issuer="StableRide", valid_window=2, backup_code_count=8),
        tokens=TokenIssuer(store, refresh_token_ttl=timedelta(days=7)),
        now_provider=clock,
        revoke_sessions_on_password_change=revoke_sessions_on_password_change,
    )


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(DEFAULT_PASSWORD)


@pytest.fixture()
def clock() -> Clock:
    return Clock()


@pytest.fixture()
def auth_store() -> FakeAuthStore:
    return FakeAuthStore()


@pytest.fixture()
def audit_repository() -> FakeAuditRepository:
    return FakeAuditRepository()


@pytest.fixture()
def admin(auth_store: FakeAuthStore, password_hash: str) -> FakeAdmin:
    return auth_store.add(FakeAdmin(email="ops@stableride.com", password_hash=password_hash))


@pytest.fixture()
def auth_service(
    auth_store: FakeAuthStore,
    audit_repository: FakeAuditRepository,
    clock: Clock,
) -> AdminAuthService:
    return build_auth_service(auth_store, audit_repository, clock)
