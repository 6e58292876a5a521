"""In-memory host model backing the default app and local demos.

Implements every capability the grant engine consumes.  It does not
compute OTPs: whoever opens an MFA challenge (an SMS sender, an
authenticator enrolment flow, a test) hands over the code it expects,
and this model only stores its digest and compares.
"""

from __future__ import annotations

import dataclasses
import logging
import secrets
from datetime import UTC, datetime, timedelta

from app.core.errors import OAuth2Error
from app.models.client import Client
from app.models.grant import User, VerificationOutcome
from app.models.mfa_challenge import MfaChallenge
from app.models.stored_token import StoredToken
from app.models.token_request import TokenRequest
from app.services import secret_service

logger = logging.getLogger(__name__)

MFA_CHALLENGE_TTL_SEC = 300  # 5 minutes


def _now_ts() -> int:
    return int(datetime.now(UTC).timestamp())


@dataclasses.dataclass(frozen=True, slots=True)
class _RegisteredClient:
    client_id: str
    secret_hash: str
    grants: frozenset[str]
    scopes: frozenset[str]


class InMemoryModel:
    def __init__(self) -> None:
        self._clients: dict[str, _RegisteredClient] = {}
        self._challenges: dict[str, MfaChallenge] = {}
        self.access_tokens: dict[str, StoredToken] = {}
        self.refresh_tokens: dict[str, StoredToken] = {}

    # -- setup ---------------------------------------------------------------

    def register_client(
        self,
        client_id: str,
        client_secret: str,
        *,
        grants: frozenset[str],
        scopes: frozenset[str] = frozenset(),
    ) -> None:
        self._clients[client_id] = _RegisteredClient(
            client_id=client_id,
            secret_hash=secret_service.hash_client_secret(client_secret),
            grants=frozenset(grants),
            scopes=frozenset(scopes),
        )

    def open_mfa_challenge(
        self,
        *,
        user_id: str,
        client_id: str,
        otp: str,
        ttl_sec: int = MFA_CHALLENGE_TTL_SEC,
    ) -> str:
        """Record an expected OTP and return the mfa_token the client presents."""
        self._drop_expired_challenges()
        mfa_token = secrets.token_urlsafe(32)
        self._challenges[mfa_token] = MfaChallenge(
            mfa_token=mfa_token,
            user_id=user_id,
            client_id=client_id,
            otp_digest=secret_service.digest_otp(otp),
            expires_at=int(
                (datetime.now(UTC) + timedelta(seconds=ttl_sec)).timestamp()
            ),
        )
        return mfa_token

    def _drop_expired_challenges(self) -> None:
        now = _now_ts()
        expired = [t for t, c in self._challenges.items() if now > c.expires_at]
        for mfa_token in expired:
            del self._challenges[mfa_token]

    # -- model capabilities --------------------------------------------------

    async def get_client(
        self, client_id: str, client_secret: str | None
    ) -> Client | None:
        registered = self._clients.get(client_id)
        if registered is None:
            return None
        if not secret_service.verify_client_secret(
            client_secret, registered.secret_hash
        ):
            return None
        return Client(client_id=client_id, extra={"scopes": registered.scopes})

    async def grant_type_allowed(self, client_id: str, grant_type: str) -> bool:
        registered = self._clients.get(client_id)
        return registered is not None and grant_type in registered.grants

    async def perform_mfa_otp(self, request: TokenRequest) -> VerificationOutcome:
        self._drop_expired_challenges()
        challenge = self._challenges.get(request.mfa_token or "")
        if challenge is None:
            raise OAuth2Error("invalid_token", "Invalid or expired mfa token.")
        if request.client is None or challenge.client_id != request.client.client_id:
            raise OAuth2Error("invalid_token", "Invalid or expired mfa token.")
        if not secret_service.verify_otp(request.otp or "", challenge.otp_digest):
            raise OAuth2Error("invalid_token", "Could not validate OTP.")

        # Single use: a verified challenge cannot be replayed.
        del self._challenges[challenge.mfa_token]
        logger.info("mfa challenge consumed  user=%s", challenge.user_id)
        return VerificationOutcome(ok=True, user=User(id=challenge.user_id))

    async def validate_scope(
        self, scope: str | None, client: Client, user: User
    ) -> str | None:
        requested = frozenset((scope or "").split())
        allowed = client.extra.get("scopes", frozenset())
        if not requested <= allowed:
            return None
        return " ".join(sorted(requested))

    async def save_access_token(
        self,
        token: str,
        client_id: str,
        expires: int | None,
        user: User,
        scope: str | None,
        grant_type: str,
    ) -> None:
        self.access_tokens[token] = StoredToken(
            token=token,
            client_id=client_id,
            user_id=str(user.id),
            expires=expires,
            scope=scope,
            grant_type=grant_type,
        )

    async def save_refresh_token(
        self, token: str, client_id: str, expires: int | None, user: User
    ) -> None:
        self.refresh_tokens[token] = StoredToken(
            token=token,
            client_id=client_id,
            user_id=str(user.id),
            expires=expires,
        )
