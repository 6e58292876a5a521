from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


@dataclass(frozen=True, slots=True)
class User:
    """The resource owner a grant resolved to.

    Only ``id`` is required by the engine; it becomes the token subject.
    """

    id: str | int | None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    """Result of a host verification hook (perform_mfa_otp, extended_grant).

    Failures with a specific reason are raised as OAuth2Error instead;
    ``ok=False`` means "not accepted, no further detail".
    """

    ok: bool
    user: User | None = None


@dataclass(frozen=True, slots=True)
class IssuedToken:
    token: str
    expires: int | None  # unix timestamp, None = no expiry


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None
