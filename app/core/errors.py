"""OAuth2 error type shared by the grant engine and the HTTP error handler.

Every rejection in the token flow is an ``OAuth2Error``.  The error kind
(RFC 6749 §5.2 ``error`` value) determines the HTTP status, so handlers
only ever decide *what* went wrong, never which status code to send.
"""

from __future__ import annotations

from fastapi import status

_STATUS_BY_ERROR: dict[str, int] = {
    "invalid_client": status.HTTP_400_BAD_REQUEST,
    "invalid_grant": status.HTTP_400_BAD_REQUEST,
    "invalid_request": status.HTTP_400_BAD_REQUEST,
    "invalid_scope": status.HTTP_400_BAD_REQUEST,
    "unsupported_grant_type": status.HTTP_400_BAD_REQUEST,
    "invalid_token": status.HTTP_401_UNAUTHORIZED,
    "server_error": status.HTTP_503_SERVICE_UNAVAILABLE,
}


class OAuth2Error(Exception):
    """An OAuth2 protocol error surfaced to the token endpoint caller.

    Host model callbacks raise this to reject a request with a specific
    kind and message (e.g. ``OAuth2Error("invalid_token", "Could not
    validate OTP.")``); the message reaches the client verbatim.
    """

    def __init__(self, error: str, description: str | None = None) -> None:
        self.error = error
        self.description = description or error
        self.code = _STATUS_BY_ERROR.get(error, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.headers: dict[str, str] = {
            "Cache-Control": "no-store",
            "Pragma": "no-cache",
        }
        if error == "invalid_client":
            self.headers["WWW-Authenticate"] = 'Basic realm="Service"'
        super().__init__(self.description)

    def to_body(self) -> dict[str, object]:
        return {
            "code": self.code,
            "error": self.error,
            "error_description": self.description,
        }

    def __repr__(self) -> str:
        return f"OAuth2Error({self.error!r}, {self.description!r})"
