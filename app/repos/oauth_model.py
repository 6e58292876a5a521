"""The host model: data-access callbacks the grant engine delegates to.

The engine owns none of the data it works with.  Client lookup, OTP
verification, scope policy and token persistence are all supplied by
the host application as a "model" object.  ``OAuth2Model`` documents
the expected shape; ``ModelAdapter`` is what the engine actually talks
to.

Capabilities may be ``async def`` or plain functions, and may be spelled
in snake_case or with the camelCase names used by the Node.js
oauth2-server model interface (``getClient``, ``performMfaOtp``, ...),
so an existing model can be ported method-for-method.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any, Protocol

from app.core.errors import OAuth2Error
from app.models.client import Client
from app.models.grant import User, VerificationOutcome
from app.models.token_request import TokenRequest

logger = logging.getLogger(__name__)

# capability -> accepted attribute names, in lookup order
CAPABILITY_ALIASES: dict[str, tuple[str, ...]] = {
    "get_client": ("get_client", "getClient"),
    "grant_type_allowed": ("grant_type_allowed", "grantTypeAllowed"),
    "perform_mfa_otp": ("perform_mfa_otp", "performMfaOtp"),
    "use_mfa_otp_grant": ("use_mfa_otp_grant", "useMfaOtpGrant"),
    "extended_grant": ("extended_grant", "extendedGrant"),
    "validate_scope": ("validate_scope", "validateScope"),
    "generate_token": ("generate_token", "generateToken"),
    "save_access_token": ("save_access_token", "saveAccessToken"),
    "save_refresh_token": ("save_refresh_token", "saveRefreshToken"),
}


class OAuth2Model(Protocol):
    """Required capabilities.

    Optional ones, looked up at call time:
      use_mfa_otp_grant(grant_type, request) -> VerificationOutcome
      extended_grant(grant_type, request) -> VerificationOutcome
      validate_scope(scope, client, user) -> str | None
      generate_token(token_type, request) -> str | None
      save_refresh_token(token, client_id, expires, user) -> None
    """

    async def get_client(
        self, client_id: str, client_secret: str | None
    ) -> Client | None: ...

    async def grant_type_allowed(self, client_id: str, grant_type: str) -> bool: ...

    async def perform_mfa_otp(self, request: TokenRequest) -> VerificationOutcome: ...

    async def save_access_token(
        self,
        token: str,
        client_id: str,
        expires: int | None,
        user: User,
        scope: str | None,
        grant_type: str,
    ) -> None: ...


class ModelAdapter:
    """Uniform async access to a duck-typed host model."""

    def __init__(self, model: object) -> None:
        self._model = model

    def find(self, capability: str) -> Callable[..., Any] | None:
        for name in CAPABILITY_ALIASES[capability]:
            fn = getattr(self._model, name, None)
            if callable(fn):
                return fn
        return None

    def has(self, capability: str) -> bool:
        return self.find(capability) is not None

    async def call(self, capability: str, *args: Any) -> Any:
        """Invoke a capability and await its result if needed.

        OAuth2Error raised by the host passes through untouched.  Any other
        exception is a host failure: logged with traceback and reported to
        the client as ``server_error``.
        """
        fn = self.find(capability)
        if fn is None:
            logger.error("Model does not implement %s", capability)
            raise OAuth2Error("server_error")
        try:
            result = fn(*args)
            if inspect.isawaitable(result):
                result = await result
        except OAuth2Error:
            raise
        except Exception as exc:
            logger.exception("Model callback %s failed", capability)
            raise OAuth2Error("server_error") from exc
        return result
