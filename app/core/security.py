"""Security utilities for password hashing, JWT access tokens and opaque secrets."""

from __future__ import annotations

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings
from app.shared.exceptions import InvalidTokenException

settings = get_settings()
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

ACCESS_TOKEN_TYPE = "access"

# Verified against when the email is unknown so both paths cost one bcrypt round.
_DUMMY_PASSWORD_HASH = pwd_context.hash(secrets.token_urlsafe(16))


class CredentialConfigurationError(RuntimeError):
    """Raised when a stored password hash cannot be interpreted."""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify plain password against a stored bcrypt hash.

    A mismatch returns False; a malformed stored hash raises
    ``CredentialConfigurationError``.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as exc:
        raise CredentialConfigurationError("Stored password hash is malformed") from exc


def verify_dummy_password(plain_password: str) -> bool:
    """Burn one hash verification for unknown accounts. Always False."""
    pwd_context.verify(plain_password, _DUMMY_PASSWORD_HASH)
    return False


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""
    return pwd_context.hash(password)


def new_session_id() -> str:
    """Random per-session identifier embedded in access tokens."""
    return secrets.token_hex(32)


def new_refresh_token() -> str:
    """High-entropy opaque refresh token value."""
    return secrets.token_hex(64)


def hash_token(value: str) -> str:
    """SHA-256 digest used to persist opaque secrets."""
    return hashlib.sha256(value.encode()).hexdigest()


def create_access_token(
    subject: str,
    *,
    email: str,
    role: str,
    session_id: str,
    now: datetime | None = None,
) -> str:
    """Create signed access token."""
    issued_at = now or datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": subject,
        "email": email,
        "role": role,
        "sid": session_id,
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate access token signature, expiry and type."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise InvalidTokenException("Token expired") from exc
    except JWTError as exc:
        raise InvalidTokenException("Invalid token") from exc

    if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        raise InvalidTokenException("Invalid token payload")
    return payload
