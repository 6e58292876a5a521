from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import jwt as pyjwt
import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.main import app, create_app  # noqa: E402
from app.models.client import Client  # noqa: E402
from app.services import token_service  # noqa: E402
from app.services.grant_service import OAuth2Server  # noqa: E402
from app.services.grants import MFA_OTP_GRANT_TYPE  # noqa: E402

CLIENT_ID = "thom"
CLIENT_SECRET = "nightworld"
TOKEN_URL = "/oauth/token"
FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


@pytest.fixture
def client() -> TestClient:
    """Client for the default app (in-memory model, env-configured grants)."""
    return TestClient(app)


def make_model(**callbacks: Callable[..., Any]) -> SimpleNamespace:
    """A host model built from loose callables, like a JS object literal."""
    return SimpleNamespace(**callbacks)


def accepting_client(client_id: str, client_secret: str | None) -> Client:
    return Client(client_id=client_id, client_secret=client_secret)


def always_allowed(client_id: str, grant_type: str) -> bool:
    return True


def bootstrap(
    model: object,
    grants: Iterable[str] = (MFA_OTP_GRANT_TYPE,),
    **server_kwargs: Any,
) -> TestClient:
    """Build an app around ``model`` and return a TestClient for it."""
    server = OAuth2Server(model=model, grants=grants, **server_kwargs)
    return TestClient(create_app(server))


def mfa_form(**fields: str) -> dict[str, str]:
    """Form body for the mfa-otp grant; keyword args add or override fields."""
    form = {
        "grant_type": MFA_OTP_GRANT_TYPE,
        "client_id": CLIENT_ID,
        "client_secret": CLIENT_SECRET,
    }
    form.update(fields)
    return form


def decode_access_token(token: str) -> dict[str, Any]:
    return pyjwt.decode(
        token,
        token_service.PUBLIC_KEY,
        algorithms=[token_service.ALGORITHM],
        issuer=token_service.ISSUER,
        audience=token_service.AUDIENCE,
        options={"require": ["sub", "iat", "jti"]},
    )


def decode_refresh_token(token: str) -> dict[str, Any]:
    return pyjwt.decode(
        token,
        token_service.PUBLIC_KEY,
        algorithms=[token_service.ALGORITHM],
        issuer=token_service.ISSUER,
        audience=token_service.REFRESH_AUDIENCE,
        options={"require": ["sub", "iat", "jti"]},
    )
