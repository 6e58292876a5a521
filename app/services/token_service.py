"""Default token generation (ES256 JWTs).

Used when the host model has no ``generate_token`` or declines to mint a
token (returns None).  Access and refresh tokens share one key pair but
carry different audiences, so a refresh token is never accepted as an
access token.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

from app.models.grant import IssuedToken

# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------
# Ephemeral EC key pair generated on import; tokens do not survive a
# restart.  Hosts that need stable tokens supply generate_token.
_private_key = ec.generate_private_key(ec.SECP256R1())
# Resource servers verify default tokens against this key.
PUBLIC_KEY = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "mfa-otp-grant"
AUDIENCE = "mfa-otp-grant"
REFRESH_AUDIENCE = "mfa-otp-grant-refresh"


def _expiry(now: datetime, lifetime: int | None) -> datetime | None:
    if lifetime is None:
        return None
    return now + timedelta(seconds=lifetime)


def _encode(payload: dict, expires_at: datetime | None) -> IssuedToken:
    if expires_at is not None:
        payload["exp"] = expires_at
    token = jwt.encode(payload, _private_key, algorithm=ALGORITHM)
    return IssuedToken(
        token=token,
        expires=int(expires_at.timestamp()) if expires_at is not None else None,
    )


def create_access_token(
    *,
    sub: str,
    client_id: str,
    grant_type: str,
    scope: str | None,
    lifetime: int | None,
) -> IssuedToken:
    """Build and sign an access token.

    Claims: sub, iss, aud, iat, jti, client_id, grant_type, scope and,
    unless the lifetime is None, exp.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "client_id": client_id,
        "grant_type": grant_type,
        "scope": scope or "",
    }
    return _encode(payload, _expiry(now, lifetime))


def create_refresh_token(
    *, sub: str, client_id: str, lifetime: int | None
) -> IssuedToken:
    """Build and sign a refresh token. Identity only, no scope."""
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": REFRESH_AUDIENCE,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "client_id": client_id,
    }
    return _encode(payload, _expiry(now, lifetime))

