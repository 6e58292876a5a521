"""Token endpoint engine: from a raw token request to an issued token.

One pass per request, each step awaited before the next:

  1. extract credentials   — method/encoding, configured grant_type,
                             client id+secret
  2. check client          — model.get_client
  3. check grant allowed   — model.grant_type_allowed
  4. dispatch grant        — grants.resolve_grant → handler.handle
  5. validate scope        — model.validate_scope (optional)
  6. issue access token    — model.generate_token or JWT, model.save_access_token
  7. issue refresh token   — only if "refresh_token" is a configured grant
                             and the model can save one
  8. respond

Any step may raise OAuth2Error; it propagates to the HTTP error handler
unchanged.  The engine keeps no per-request state on ``self``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from app.core.config import DEFAULT_ACCESS_TOKEN_LIFETIME, DEFAULT_REFRESH_TOKEN_LIFETIME
from app.core.errors import OAuth2Error
from app.core.metrics import TOKEN_GRANTS
from app.models.client import Client
from app.models.grant import IssuedToken, TokenResponse, User
from app.models.token_request import TokenRequest
from app.repos.oauth_model import ModelAdapter
from app.services import token_service
from app.services.grants import UNSUPPORTED_GRANT_MESSAGE, resolve_grant

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_ID_PATTERN = re.compile(r"^[a-z0-9\-_]{3,40}$", re.IGNORECASE)
DEFAULT_GRANT_TYPE_PATTERN = re.compile(
    r"^(?:[a-z0-9_.\-]+|urn:[a-z0-9:._\-]+|https?://\S+)$", re.IGNORECASE
)

REFRESH_TOKEN_GRANT = "refresh_token"


class OAuth2Server:
    """Token-issuing engine bound to one host model and grant configuration."""

    def __init__(
        self,
        model: object,
        grants: Iterable[str],
        *,
        access_token_lifetime: int | None = DEFAULT_ACCESS_TOKEN_LIFETIME,
        refresh_token_lifetime: int | None = DEFAULT_REFRESH_TOKEN_LIFETIME,
        client_id_pattern: re.Pattern[str] = DEFAULT_CLIENT_ID_PATTERN,
        grant_type_pattern: re.Pattern[str] = DEFAULT_GRANT_TYPE_PATTERN,
    ) -> None:
        self.model = ModelAdapter(model)
        self.grants = frozenset(grants)
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime
        self.client_id_pattern = client_id_pattern
        self.grant_type_pattern = grant_type_pattern

    async def grant(self, request: TokenRequest) -> TokenResponse:
        """Run the full token flow for one request.

        Records the outcome in TOKEN_GRANTS and logs rejections; the
        OAuth2Error itself is re-raised for the HTTP layer.
        """
        # Unknown grant types are client input; keep them out of labels.
        label = request.grant_type if request.grant_type in self.grants else "unknown"
        try:
            response = await self._grant(request)
        except OAuth2Error as e:
            TOKEN_GRANTS.labels(grant_type=label, outcome=e.error).inc()
            logger.warning(
                "grant rejected  grant_type=%s client_id=%s error=%s (%s)",
                request.grant_type,
                request.client_id,
                e.error,
                e.description,
                extra={
                    "grant_type": request.grant_type,
                    "client_id": request.client_id,
                    "error": e.error,
                },
            )
            raise
        TOKEN_GRANTS.labels(grant_type=label, outcome="issued").inc()
        return response

    async def _grant(self, request: TokenRequest) -> TokenResponse:
        grant_type, client_id, client_secret = self._extract_credentials(request)

        client = await self._check_client(client_id, client_secret)
        request = replace(request, client=client)

        await self._check_grant_type_allowed(client_id, grant_type)

        handler = resolve_grant(grant_type, self.grants, self.model)
        user = await handler.handle(request, self.model)
        logger.info(
            "grant accepted  grant_type=%s client_id=%s user=%s",
            grant_type,
            client_id,
            user.id,
            extra={"grant_type": grant_type, "client_id": client_id},
        )

        scope = await self._validate_scope(request.scope, client, user)

        access = await self._issue_access_token(
            request, client_id, grant_type, user, scope
        )
        refresh = await self._issue_refresh_token(request, client_id, user)

        return TokenResponse(
            access_token=access.token,
            expires_in=self.access_token_lifetime,
            refresh_token=refresh.token if refresh is not None else None,
            scope=scope or None,
        )

    # ---------------------------------------------------------------------
    # Steps
    # ---------------------------------------------------------------------

    def _extract_credentials(self, request: TokenRequest) -> tuple[str, str, str]:
        if not request.is_form_post:
            raise OAuth2Error(
                "invalid_request",
                "Method must be POST with application/x-www-form-urlencoded encoding",
            )

        grant_type = request.grant_type
        if not grant_type or not self.grant_type_pattern.match(grant_type):
            raise OAuth2Error(
                "invalid_request", "Invalid or missing grant_type parameter"
            )
        if grant_type not in self.grants:
            raise OAuth2Error("invalid_request", UNSUPPORTED_GRANT_MESSAGE)

        client_id = request.client_id
        if not client_id or not self.client_id_pattern.match(client_id):
            raise OAuth2Error("invalid_client", "Invalid or missing client_id parameter")
        if not request.client_secret:
            raise OAuth2Error("invalid_client", "Missing client_secret parameter")

        return grant_type, client_id, request.client_secret

    async def _check_client(self, client_id: str, client_secret: str) -> Client:
        client = await self.model.call("get_client", client_id, client_secret)
        if not client:
            raise OAuth2Error("invalid_client", "Client credentials are invalid")
        return client

    async def _check_grant_type_allowed(self, client_id: str, grant_type: str) -> None:
        allowed = await self.model.call("grant_type_allowed", client_id, grant_type)
        if not allowed:
            raise OAuth2Error(
                "invalid_client", "The grant type is unauthorised for this client_id"
            )

    async def _validate_scope(
        self, requested: str | None, client: Client, user: User
    ) -> str | None:
        if not self.model.has("validate_scope"):
            return requested
        scope = await self.model.call("validate_scope", requested, client, user)
        if scope is None:
            raise OAuth2Error("invalid_scope", "Invalid scope")
        return scope

    async def _generate(self, token_type: str, request: TokenRequest) -> str | None:
        if not self.model.has("generate_token"):
            return None
        return await self.model.call("generate_token", token_type, request)

    async def _issue_access_token(
        self,
        request: TokenRequest,
        client_id: str,
        grant_type: str,
        user: User,
        scope: str | None,
    ) -> IssuedToken:
        custom = await self._generate("accessToken", request)
        if custom is not None:
            access = IssuedToken(
                token=custom, expires=_expires_at(self.access_token_lifetime)
            )
        else:
            access = token_service.create_access_token(
                sub=str(user.id),
                client_id=client_id,
                grant_type=grant_type,
                scope=scope,
                lifetime=self.access_token_lifetime,
            )

        await self.model.call(
            "save_access_token",
            access.token,
            client_id,
            access.expires,
            user,
            scope,
            grant_type,
        )
        logger.debug("access token saved  client_id=%s user=%s", client_id, user.id)
        return access

    async def _issue_refresh_token(
        self, request: TokenRequest, client_id: str, user: User
    ) -> IssuedToken | None:
        if REFRESH_TOKEN_GRANT not in self.grants:
            return None
        if not self.model.has("save_refresh_token"):
            return None

        custom = await self._generate("refreshToken", request)
        if custom is not None:
            refresh = IssuedToken(
                token=custom, expires=_expires_at(self.refresh_token_lifetime)
            )
        else:
            refresh = token_service.create_refresh_token(
                sub=str(user.id),
                client_id=client_id,
                lifetime=self.refresh_token_lifetime,
            )

        await self.model.call(
            "save_refresh_token", refresh.token, client_id, refresh.expires, user
        )
        logger.debug("refresh token saved  client_id=%s user=%s", client_id, user.id)
        return refresh


def _expires_at(lifetime: int | None) -> int | None:
    if lifetime is None:
        return None
    return int((datetime.now(UTC) + timedelta(seconds=lifetime)).timestamp())
