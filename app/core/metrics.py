"""Prometheus metrics for the token service.

All metrics are defined here so there is a single inventory of what the
service measures; other modules import and update them at the point of
action.  Prometheus scrapes them from ``GET /metrics``.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Token requests are dominated by host model round-trips (client
    # lookup, OTP check, token persistence), hence the wide upper range.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Grant metrics (populated by the grant engine)
# ---------------------------------------------------------------------------

TOKEN_GRANTS = Counter(
    "oauth_token_grants_total",
    "Token requests by grant type and outcome",
    # outcome: "issued" or the OAuth2 error kind ("invalid_request", ...)
    ["grant_type", "outcome"],
)
