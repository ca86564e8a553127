"""Access/refresh token issuance, rotation and revocation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID

from app.core.security import create_access_token, hash_token, new_refresh_token, new_session_id
from app.shared.exceptions import InvalidTokenException

logger = logging.getLogger(__name__)


class RefreshTokenStore(Protocol):
    async def create_refresh_token(self, admin_id: UUID, token_hash: str, expires_at: datetime) -> object: ...

    async def consume_refresh_token(self, token_hash: str, now: datetime) -> UUID | None: ...

    async def delete_refresh_token(self, admin_id: UUID, token_hash: str) -> int: ...

    async def delete_refresh_tokens_for_admin(self, admin_id: UUID) -> int: ...


class TokenSubject(Protocol):
    id: UUID
    email: str
    role: str


@dataclass(frozen=True, slots=True)
class IssuedTokens:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime
    session_id: str


class TokenIssuer:
    """Mints stateless access tokens and persisted single-use refresh tokens."""

    def __init__(self, store: RefreshTokenStore, *, refresh_token_ttl: timedelta) -> None:
        self.store = store
        self.refresh_token_ttl = refresh_token_ttl

    async def issue(self, subject: TokenSubject, now: datetime) -> IssuedTokens:
        session_id = new_session_id()
        access_token = create_access_token(
            str(subject.id),
            email=subject.email,
            role=str(subject.role),
            session_id=session_id,
            now=now,
        )
        refresh_token = new_refresh_token()
        expires_at = now + self.refresh_token_ttl
        await self.store.create_refresh_token(subject.id, hash_token(refresh_token), expires_at)
        return IssuedTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            refresh_expires_at=expires_at,
            session_id=session_id,
        )

    async def consume(self, refresh_token: str, now: datetime) -> UUID:
        """Delete the refresh token record and return its owner.

        Must run in the same transaction as the replacement ``issue`` call.
        """
        admin_id = await self.store.consume_refresh_token(hash_token(refresh_token), now)
        if admin_id is None:
            logger.info("Rejected unknown, expired or replayed refresh token")
            raise InvalidTokenException("Invalid or expired refresh token")
        return admin_id

    async def revoke(self, admin_id: UUID, refresh_token: str | None) -> int:
        """Delete one refresh token, or every token of the account when none is given."""
        if refresh_token:
            return await self.store.delete_refresh_token(admin_id, hash_token(refresh_token))
        return await self.store.delete_refresh_tokens_for_admin(admin_id)
