"""Liveness and readiness endpoints.

/health — the process is up and reports which grant types it serves.
/ready  — the engine has no backing services of its own (the host model
          owns storage), so readiness equals liveness.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    server = request.app.state.oauth_server
    return {
        "status": "ok",
        "grants": sorted(server.grants),
    }


@router.get("/ready")
async def ready() -> Response:
    return Response(status_code=200)
