"""TOTP enrollment, verification and single-use backup codes."""

from __future__ import annotations

import base64
import secrets
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Protocol
from uuid import UUID

import pyotp
import qrcode

from app.core.security import hash_token
from app.shared.exceptions import MfaSetupException


class MfaStore(Protocol):
    async def store_pending_mfa(self, admin_id: UUID, secret: str, backup_code_hashes: list[str]) -> bool: ...

    async def activate_mfa(self, admin_id: UUID, secret: str) -> bool: ...

    async def clear_mfa(self, admin_id: UUID) -> None: ...

    async def consume_backup_code(self, admin_id: UUID, code_hash: str) -> bool: ...


class MfaAccount(Protocol):
    id: UUID
    email: str
    mfa_enabled: bool
    mfa_secret: str | None


@dataclass(frozen=True, slots=True)
class MfaSetup:
    secret: str
    provisioning_uri: str
    qr_code: str
    backup_codes: list[str]


def _normalize_code(code: str) -> str:
    return "".join(ch for ch in code.strip() if ch.isalnum()).upper()


def render_qr_data_url(payload: str) -> str:
    """Encode ``payload`` as a PNG QR code data URL."""
    image = qrcode.make(payload)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


class MfaManager:
    """Manages TOTP secrets and backup codes for admin accounts."""

    def __init__(
        self,
        store: MfaStore,
        *,
        issuer: str,
        valid_window: int,
        backup_code_count: int,
    ) -> None:
        self.store = store
        self.issuer = issuer
        self.valid_window = valid_window
        self.backup_code_count = backup_code_count

    def generate_backup_codes(self) -> list[str]:
        return [secrets.token_hex(4).upper() for _ in range(self.backup_code_count)]

    async def begin_setup(self, account: MfaAccount) -> MfaSetup:
        """Generate and persist a pending secret; MFA stays disabled until confirmed."""
        if account.mfa_enabled:
            raise MfaSetupException("MFA is already enabled")

        secret = pyotp.random_base32()
        backup_codes = self.generate_backup_codes()
        stored = await self.store.store_pending_mfa(
            account.id,
            secret,
            [hash_token(code) for code in backup_codes],
        )
        if not stored:
            raise MfaSetupException("MFA is already enabled")

        provisioning_uri = pyotp.TOTP(secret).provisioning_uri(name=account.email, issuer_name=self.issuer)
        return MfaSetup(
            secret=secret,
            provisioning_uri=provisioning_uri,
            qr_code=render_qr_data_url(provisioning_uri),
            backup_codes=backup_codes,
        )

    async def confirm(self, account: MfaAccount, code: str, *, now: datetime | None = None) -> None:
        """Enable MFA once a code generated from the pending secret checks out."""
        if account.mfa_enabled:
            raise MfaSetupException("MFA is already enabled")
        if not account.mfa_secret:
            raise MfaSetupException("MFA setup not initiated")
        if not self.verify_totp(account.mfa_secret, code, now=now):
            raise MfaSetupException("Invalid MFA code")
        if not await self.store.activate_mfa(account.id, account.mfa_secret):
            raise MfaSetupException("MFA setup changed, start the setup again")

    def verify_totp(self, secret: str, code: str, *, now: datetime | None = None) -> bool:
        cleaned = _normalize_code(code)
        if len(cleaned) != 6 or not cleaned.isdigit():
            return False
        return pyotp.TOTP(secret).verify(cleaned, for_time=now, valid_window=self.valid_window)

    async def verify_login_code(self, account: MfaAccount, code: str, *, now: datetime | None = None) -> str | None:
        """Return the factor that matched ("totp" or "backup_code"), or None."""
        if not account.mfa_secret:
            return None
        if self.verify_totp(account.mfa_secret, code, now=now):
            return "totp"

        cleaned = _normalize_code(code)
        if cleaned and await self.store.consume_backup_code(account.id, hash_token(cleaned)):
            return "backup_code"
        return None

    async def disable(self, account: MfaAccount) -> None:
        await self.store.clear_mfa(account.id)
