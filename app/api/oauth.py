from __future__ import annotations

import base64
import binascii
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.errors import OAuth2Error
from app.models.token_request import TokenRequest
from app.services.grant_service import OAuth2Server

# ---------------------------------------------------------------------------
# Token endpoint
#
#   POST /oauth/token  — application/x-www-form-urlencoded
#
# The route accepts every method so that a GET or a JSON body gets the
# OAuth2 "invalid_request" error instead of FastAPI's 405/422.
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

_NO_CACHE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def _basic_credentials(request: Request) -> tuple[str | None, str | None]:
    """Client credentials from an HTTP Basic header (RFC 6749 §2.3.1).

    A missing or malformed header yields (None, None) so the caller falls
    back to the body fields.
    """
    header = request.headers.get("authorization", "")
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None, None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        logger.debug("Ignoring malformed Basic authorization header")
        return None, None
    client_id, sep, client_secret = decoded.partition(":")
    if not sep:
        return None, None
    return client_id, client_secret


async def _read_token_request(request: Request) -> TokenRequest:
    content_type = request.headers.get("content-type", "")
    form: dict[str, str] = {}
    if content_type.split(";", 1)[0].strip().lower() == (
        "application/x-www-form-urlencoded"
    ):
        async with request.form() as data:
            form = {k: v for k, v in data.items() if isinstance(v, str)}

    client_id, client_secret = _basic_credentials(request)
    return TokenRequest.from_form(
        method=request.method,
        content_type=content_type,
        form=form,
        headers=dict(request.headers),
        client_id=client_id,
        client_secret=client_secret,
    )


def build_router(server: OAuth2Server) -> APIRouter:
    """Token endpoint router bound to one OAuth2Server."""
    router = APIRouter(tags=["oauth"])

    @router.api_route(
        "/oauth/token",
        methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    )
    async def token(request: Request) -> JSONResponse:
        token_request = await _read_token_request(request)
        response = await server.grant(token_request)
        return JSONResponse(
            content=response.model_dump(exclude_none=True),
            headers=_NO_CACHE_HEADERS,
        )

    return router


async def oauth_error_handler(_request: Request, exc: OAuth2Error) -> JSONResponse:
    return JSONResponse(
        status_code=exc.code,
        content=exc.to_body(),
        headers=exc.headers,
    )


def install_error_handler(app: FastAPI) -> None:
    """Render OAuth2Error as ``{code, error, error_description}`` JSON."""
    app.add_exception_handler(OAuth2Error, oauth_error_handler)  # type: ignore[arg-type]
