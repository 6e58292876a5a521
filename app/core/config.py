from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

DEFAULT_GRANTS = "urn:custom:mfa-otp,refresh_token"
DEFAULT_ACCESS_TOKEN_LIFETIME = 3600  # 1 hour
DEFAULT_REFRESH_TOKEN_LIFETIME = 1209600  # 2 weeks


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _parse_lifetime(name: str, raw: str) -> int | None:
    # "none" disables expiry for that token type
    if raw.lower() == "none":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"{name} must be a number of seconds or 'none' (got {raw!r})"
        ) from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    grants: tuple[str, ...]
    access_token_lifetime: int | None
    refresh_token_lifetime: int | None
    # Client registered on the default in-memory model, if configured
    demo_client_id: str | None = None
    demo_client_secret: str | None = None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    port_raw = _getenv("PORT", "8000")
    grants_raw = _getenv("OAUTH_GRANTS", DEFAULT_GRANTS)

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    grants = tuple(g.strip() for g in grants_raw.split(",") if g.strip())
    if not grants:
        raise ValueError("OAUTH_GRANTS must name at least one grant type")

    access_token_lifetime = _parse_lifetime(
        "ACCESS_TOKEN_LIFETIME",
        _getenv("ACCESS_TOKEN_LIFETIME", str(DEFAULT_ACCESS_TOKEN_LIFETIME)),
    )
    refresh_token_lifetime = _parse_lifetime(
        "REFRESH_TOKEN_LIFETIME",
        _getenv("REFRESH_TOKEN_LIFETIME", str(DEFAULT_REFRESH_TOKEN_LIFETIME)),
    )

    demo_client_id = _getenv("DEMO_CLIENT_ID", "") or None
    demo_client_secret = _getenv("DEMO_CLIENT_SECRET", "") or None
    if (demo_client_id is None) != (demo_client_secret is None):
        raise ValueError("DEMO_CLIENT_ID and DEMO_CLIENT_SECRET must be set together")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("1", "true", "yes"),
        port=port,
        grants=grants,
        access_token_lifetime=access_token_lifetime,
        refresh_token_lifetime=refresh_token_lifetime,
        demo_client_id=demo_client_id,
        demo_client_secret=demo_client_secret,
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
