"""Tests for Prometheus metrics middleware.

NOTE ON TESTING PROMETHEUS METRICS:
The prometheus-client library uses a global default registry.  Counters
can only go up — they cannot be reset between tests.  To avoid test
pollution, we assert on DELTAS: read the value before the action, perform
the action, read the value after, and assert the difference.

This is the standard pattern for testing Prometheus metrics in Python.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from app.models.client import Client
from app.models.grant import User, VerificationOutcome
from app.services.grants import MFA_OTP_GRANT_TYPE
from tests.conftest import always_allowed, bootstrap, make_model, mfa_form


def _get_sample(name: str, labels: dict | None = None) -> float:
    """Read a metric sample's current value from the global registry."""
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    """Each HTTP request should increment the request counter."""
    before = _get_sample(
        "http_requests_total",
        {"method": "GET", "endpoint": "/health", "status_code": "200"},
    )
    client.get("/health")
    after = _get_sample(
        "http_requests_total",
        {"method": "GET", "endpoint": "/health", "status_code": "200"},
    )
    assert after - before >= 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    """Each request should add an observation to the duration histogram."""
    before = _get_sample(
        "http_request_duration_seconds_count",
        {"method": "GET", "endpoint": "/health"},
    )
    client.get("/health")
    after = _get_sample(
        "http_request_duration_seconds_count",
        {"method": "GET", "endpoint": "/health"},
    )
    assert after - before >= 1


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    """GET /metrics should return Prometheus text exposition format."""
    # Make a request first so there's data to report
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    # Prometheus text format contains HELP and TYPE lines
    assert "http_requests_total" in resp.text
    assert "http_request_duration_seconds" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    """Requests to /metrics itself should not be counted in metrics."""
    before = _get_sample(
        "http_requests_total",
        {"method": "GET", "endpoint": "/metrics", "status_code": "200"},
    )
    client.get("/metrics")
    client.get("/metrics")
    after = _get_sample(
        "http_requests_total",
        {"method": "GET", "endpoint": "/metrics", "status_code": "200"},
    )
    # Should not have incremented (we skip /metrics in the middleware)
    assert after == before


def test_token_grant_outcomes_are_counted() -> None:
    """Rejections are counted by error kind, successes as 'issued'."""
    model = make_model(
        get_client=lambda cid, secret: Client(client_id=cid),
        grant_type_allowed=always_allowed,
        perform_mfa_otp=lambda req: VerificationOutcome(ok=True, user=User(id=1)),
        save_access_token=lambda *args: None,
    )
    client = bootstrap(model)
    issued = {"grant_type": MFA_OTP_GRANT_TYPE, "outcome": "issued"}
    missing = {"grant_type": MFA_OTP_GRANT_TYPE, "outcome": "invalid_request"}
    before_issued = _get_sample("oauth_token_grants_total", issued)
    before_missing = _get_sample("oauth_token_grants_total", missing)

    client.post("/oauth/token", data=mfa_form(otp="1", mfa_token="2"))
    client.post("/oauth/token", data=mfa_form(otp="1"))

    assert _get_sample("oauth_token_grants_total", issued) - before_issued == 1
    assert _get_sample("oauth_token_grants_total", missing) - before_missing == 1


def test_unknown_grant_type_label_is_bounded() -> None:
    model = make_model(
        get_client=lambda cid, secret: Client(client_id=cid),
        grant_type_allowed=always_allowed,
    )
    client = bootstrap(model)
    labels = {"grant_type": "unknown", "outcome": "invalid_request"}
    before = _get_sample("oauth_token_grants_total", labels)

    client.post("/oauth/token", data=mfa_form(grant_type="urn:made-up:grant"))

    assert _get_sample("oauth_token_grants_total", labels) - before == 1
