from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_default_secret_key_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", secret_key="change-me")
    assert settings.secret_key == "change-me"


def test_default_secret_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me")


def test_placeholder_secret_key_prefix_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="prod", secret_key="change-me-in-production")


def test_insecure_refresh_cookie_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            app_env="production",
            secret_key="super-secure-value",
            refresh_cookie_secure=False,
        )


def test_custom_secret_key_allowed_in_production() -> None:
    settings = Settings(_env_file=None, app_env="production", secret_key="super-secure-value")
    assert settings.secret_key == "super-secure-value"


def test_auth_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.access_token_expire_minutes == 60
    assert settings.refresh_token_expire_days == 7
    assert settings.login_max_attempts == 5
    assert settings.login_lockout_minutes == 30
    assert settings.mfa_valid_window == 2
    assert settings.refresh_cookie_name == "adminRefreshToken"


def test_bcrypt_rounds_bounds_are_enforced() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, bcrypt_rounds=3)


def test_trusted_proxy_ips_parsed_from_comma_separated_value() -> None:
    settings = Settings(_env_file=None, trusted_proxy_ips="10.0.0.1, 10.0.0.2,,")
    assert settings.trusted_proxy_ips == ("10.0.0.1", "10.0.0.2")
