from __future__ import annotations

import pytest

from app.core.config import AppEnv, Settings, load_settings

# ---- valid values ----


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"


def test_load_settings_respects_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("LOG_LEVEL", "error")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "error"


def test_load_settings_normalizes_case(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "PROD")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "debug"


def test_load_settings_strips_whitespace(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "  test  ")
    monkeypatch.setenv("LOG_LEVEL", "  warning  ")
    settings = load_settings()
    assert settings.app_env == "test"
    assert settings.log_level == "warning"


# ---- invalid APP_ENV ----


def test_load_settings_rejects_invalid_app_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("LOG_LEVEL", "info")
    with pytest.raises(ValueError, match="APP_ENV must be dev|test|prod"):
        load_settings()


def test_load_settings_rejects_empty_app_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "")
    with pytest.raises(ValueError, match="APP_ENV must be dev|test|prod"):
        load_settings()


# ---- invalid LOG_LEVEL ----


def test_load_settings_rejects_invalid_log_level(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    with pytest.raises(ValueError, match="LOG_LEVEL must be debug|info|warning|error"):
        load_settings()


def test_load_settings_rejects_empty_log_level(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "")
    with pytest.raises(ValueError, match="LOG_LEVEL must be debug|info|warning|error"):
        load_settings()


# ---- grants and token lifetimes ----


def test_load_settings_default_grants(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OAUTH_GRANTS", raising=False)
    settings = load_settings()
    assert settings.grants == ("urn:custom:mfa-otp", "refresh_token")


def test_load_settings_parses_grant_list(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OAUTH_GRANTS", " urn:custom:mfa-otp , ,http://custom.com ")
    settings = load_settings()
    assert settings.grants == ("urn:custom:mfa-otp", "http://custom.com")


def test_load_settings_rejects_empty_grants(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OAUTH_GRANTS", " , ")
    with pytest.raises(ValueError, match="OAUTH_GRANTS"):
        load_settings()


def test_load_settings_default_lifetimes(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ACCESS_TOKEN_LIFETIME", raising=False)
    monkeypatch.delenv("REFRESH_TOKEN_LIFETIME", raising=False)
    settings = load_settings()
    assert settings.access_token_lifetime == 3600
    assert settings.refresh_token_lifetime == 1209600


def test_load_settings_lifetime_none(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACCESS_TOKEN_LIFETIME", "None")
    settings = load_settings()
    assert settings.access_token_lifetime is None


@pytest.mark.parametrize("raw", ["soon", "0", "-5"])
def test_load_settings_rejects_bad_lifetime(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("ACCESS_TOKEN_LIFETIME", raw)
    with pytest.raises(ValueError, match="ACCESS_TOKEN_LIFETIME"):
        load_settings()


def test_load_settings_log_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_JSON", "true")
    assert load_settings().log_json is True
    monkeypatch.setenv("LOG_JSON", "no")
    assert load_settings().log_json is False


def test_load_settings_demo_client_unset_by_default(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("DEMO_CLIENT_ID", raising=False)
    monkeypatch.delenv("DEMO_CLIENT_SECRET", raising=False)
    settings = load_settings()
    assert settings.demo_client_id is None
    assert settings.demo_client_secret is None


def test_load_settings_demo_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEMO_CLIENT_ID", "demo-client")
    monkeypatch.setenv("DEMO_CLIENT_SECRET", "demo-secret")
    settings = load_settings()
    assert settings.demo_client_id == "demo-client"
    assert settings.demo_client_secret == "demo-secret"


def test_load_settings_rejects_demo_client_without_secret(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("DEMO_CLIENT_ID", "demo-client")
    monkeypatch.delenv("DEMO_CLIENT_SECRET", raising=False)
    with pytest.raises(ValueError, match="DEMO_CLIENT_ID and DEMO_CLIENT_SECRET"):
        load_settings()


# ---- Settings properties ----


def _make_settings(app_env: AppEnv = "dev") -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=app_env,
        log_level="info",
        log_json=False,
        port=8000,
        grants=("urn:custom:mfa-otp",),
        access_token_lifetime=3600,
        refresh_token_lifetime=1209600,
    )


def test_settings_is_dev() -> None:
    assert _make_settings("dev").is_dev is True
    assert _make_settings("test").is_dev is False
    assert _make_settings("prod").is_dev is False


def test_settings_is_frozen() -> None:
    s = _make_settings()
    with pytest.raises(AttributeError):
        s.app_env = "prod"  # type: ignore[misc]
