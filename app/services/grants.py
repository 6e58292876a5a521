"""Grant handlers: turn a validated token request into a resource owner.

Dispatch is by ``grant_type``:

  urn:custom:mfa-otp        → MfaOtpGrant   (OTP + MFA token second factor)
  any other absolute URI    → ExtendedGrant (host model's extended_grant)
  anything else             → unsupported

Core RFC 6749 grants (password, authorization_code, ...) have no handler
here; a host that lists them in its grants config still gets
"Invalid grant_type".
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

from app.core.errors import OAuth2Error
from app.models.grant import User, VerificationOutcome
from app.models.token_request import TokenRequest
from app.repos.oauth_model import ModelAdapter

logger = logging.getLogger(__name__)

MFA_OTP_GRANT_TYPE = "urn:custom:mfa-otp"

UNSUPPORTED_GRANT_MESSAGE = "Invalid grant_type parameter or parameter missing"
MISSING_MFA_PARAMS_MESSAGE = "You must provide otp and mfa token"

# RFC 3986 scheme followed by ":" marks an extension grant (RFC 6749 §4.5)
_EXTENSION_GRANT_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]+:")


class GrantHandler(Protocol):
    async def handle(self, request: TokenRequest, model: ModelAdapter) -> User: ...


def _accept(outcome: object, rejected_message: str) -> User:
    if outcome is not None and not isinstance(outcome, VerificationOutcome):
        logger.error(
            "Verification hook returned %s, expected VerificationOutcome",
            type(outcome).__name__,
        )
        raise OAuth2Error("server_error")
    if outcome is None or not outcome.ok:
        raise OAuth2Error("invalid_request", rejected_message)
    if outcome.user is not None and not isinstance(outcome.user, User):
        logger.error(
            "Verification hook returned user of type %s, expected User",
            type(outcome.user).__name__,
        )
        raise OAuth2Error("server_error")
    if outcome.user is None or outcome.user.id is None:
        raise OAuth2Error("invalid_request", "Invalid request.")
    return outcome.user


class MfaOtpGrant:
    """``urn:custom:mfa-otp``: exchange an OTP for a token.

    The client already holds an ``mfa_token`` from a first-factor step
    and now proves the second factor with ``otp``.  Verifying the pair is
    entirely the host's job; this handler only guarantees the host never
    sees a request missing either value.
    """

    async def handle(self, request: TokenRequest, model: ModelAdapter) -> User:
        if not request.otp or not request.mfa_token:
            raise OAuth2Error("invalid_request", MISSING_MFA_PARAMS_MESSAGE)

        # perform_mfa_otp is the primary hook; the other two are older
        # spellings of the same check and take the grant type first.
        if model.has("perform_mfa_otp"):
            outcome = await model.call("perform_mfa_otp", request)
        elif model.has("use_mfa_otp_grant"):
            outcome = await model.call(
                "use_mfa_otp_grant", MFA_OTP_GRANT_TYPE, request
            )
        else:
            outcome = await model.call("extended_grant", MFA_OTP_GRANT_TYPE, request)

        user = _accept(outcome, "Invalid otp or mfa token")
        logger.debug("mfa-otp verified  user=%s", user.id)
        return user


class ExtendedGrant:
    """Any other extension grant, fully decided by ``extended_grant``."""

    async def handle(self, request: TokenRequest, model: ModelAdapter) -> User:
        grant_type = request.grant_type or ""
        outcome = await model.call("extended_grant", grant_type, request)
        return _accept(outcome, UNSUPPORTED_GRANT_MESSAGE)


GRANT_HANDLERS: dict[str, GrantHandler] = {
    MFA_OTP_GRANT_TYPE: MfaOtpGrant(),
}

_extended_grant = ExtendedGrant()


def resolve_grant(
    grant_type: str, grants: frozenset[str], model: ModelAdapter
) -> GrantHandler:
    """Pick the handler for ``grant_type`` or reject it as unsupported."""
    if grant_type not in grants:
        raise OAuth2Error("invalid_request", UNSUPPORTED_GRANT_MESSAGE)

    handler = GRANT_HANDLERS.get(grant_type)
    if handler is not None:
        return handler

    if _EXTENSION_GRANT_RE.match(grant_type) and model.has("extended_grant"):
        return _extended_grant

    raise OAuth2Error("invalid_request", UNSUPPORTED_GRANT_MESSAGE)
