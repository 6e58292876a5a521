from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.health import router as health_router
from app.api.metrics_endpoint import router as metrics_router
from app.api.oauth import build_router, install_error_handler
from app.core.config import SETTINGS, Settings
from app.core.logging import setup_logging
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_context import RequestContextMiddleware
from app.repos.in_memory_model import InMemoryModel
from app.services.grant_service import OAuth2Server

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


def default_server(settings: Settings = SETTINGS) -> OAuth2Server:
    """Engine over an in-memory model for local runs.

    Registers DEMO_CLIENT_ID / DEMO_CLIENT_SECRET, when configured, for every
    configured grant.  MFA challenges are not opened over HTTP: the
    first-factor step that owns the model calls
    ``InMemoryModel.open_mfa_challenge``.  Without a demo client every
    token request ends in ``invalid_client``; production hosts pass their
    own server to ``create_app``.
    """
    model = InMemoryModel()
    if settings.demo_client_id and settings.demo_client_secret:
        model.register_client(
            settings.demo_client_id,
            settings.demo_client_secret,
            grants=frozenset(settings.grants),
        )
        logger.info("demo client registered  client_id=%s", settings.demo_client_id)
    return OAuth2Server(
        model=model,
        grants=settings.grants,
        access_token_lifetime=settings.access_token_lifetime,
        refresh_token_lifetime=settings.refresh_token_lifetime,
    )


def create_app(server: OAuth2Server | None = None) -> FastAPI:
    """Build the token service around ``server`` (default: in-memory model)."""
    server = server or default_server()

    app = FastAPI(
        title="mfa-otp-grant",
        docs_url="/docs" if SETTINGS.is_dev else None,
        redoc_url="/redoc" if SETTINGS.is_dev else None,
    )
    app.state.oauth_server = server

    # Last-added runs first: RequestContext → Metrics → route handler
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestContextMiddleware)

    install_error_handler(app)

    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(build_router(server))
    return app


app = create_app()

logger.info(
    "mfa-otp-grant started  env=%s log_level=%s port=%d grants=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    ",".join(sorted(app.state.oauth_server.grants)),
)
