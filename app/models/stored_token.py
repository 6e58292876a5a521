from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StoredToken:
    token: str
    client_id: str
    user_id: str
    expires: int | None
    scope: str | None = None
    grant_type: str | None = None
