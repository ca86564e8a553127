from __future__ import annotations

from datetime import timedelta

import pytest
from jose import jwt

from app.core.config import get_settings
from app.core.security import (
    CredentialConfigurationError,
    create_access_token,
    decode_access_token,
    hash_password,
    hash_token,
    new_refresh_token,
    new_session_id,
    verify_dummy_password,
    verify_password,
)
from app.shared.exceptions import InvalidTokenException
from app.shared.utils import utc_now


def _token(**overrides) -> str:
    return create_access_token(
        overrides.pop("subject", "3f1c3a3e-6d55-4c1e-9b52-0c3f1f5a9a11"),
        email="finance@stableride.com",
        role="FINANCE_MANAGER",
        session_id="sid",
        **overrides,
    )


def test_password_hash_roundtrip() -> None:
    hashed = hash_password("Str0ng!Pass")

    assert hashed != "Str0ng!Pass"
    assert verify_password("Str0ng!Pass", hashed) is True
    assert verify_password("Other!Pass1", hashed) is False


def test_malformed_stored_hash_is_a_configuration_error() -> None:
    with pytest.raises(CredentialConfigurationError):
        verify_password("Str0ng!Pass", "not-a-bcrypt-hash")


def test_dummy_verification_never_succeeds() -> None:
    assert verify_dummy_password("Str0ng!Pass") is False


def test_opaque_secrets_are_random_hex() -> None:
    assert len(new_session_id()) == 64
    assert len(new_refresh_token()) == 128
    assert new_refresh_token() != new_refresh_token()
    assert hash_token("abc") == hash_token("abc")
    assert len(hash_token("abc")) == 64


def test_access_token_carries_identity_claims() -> None:
    claims = decode_access_token(_token())

    assert claims["email"] == "finance@stableride.com"
    assert claims["role"] == "FINANCE_MANAGER"
    assert claims["sid"] == "sid"
    assert claims["type"] == "access"
    assert claims["exp"] - claims["iat"] == 60 * 60


def test_expired_access_token_is_rejected() -> None:
    token = _token(now=utc_now() - timedelta(hours=2))

    with pytest.raises(InvalidTokenException) as exc:
        decode_access_token(token)
    assert exc.value.message == "Token expired"


def test_tampered_access_token_is_rejected() -> None:
    with pytest.raises(InvalidTokenException) as exc:
        decode_access_token(_token() + "x")
    assert exc.value.message == "Invalid token"


def test_token_with_wrong_type_is_rejected() -> None:
    settings = get_settings()
    token = jwt.encode(
        {"sub": "someone", "type": "refresh", "exp": utc_now() + timedelta(minutes=5)},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(InvalidTokenException) as exc:
        decode_access_token(token)
    assert exc.value.message == "Invalid token payload"
