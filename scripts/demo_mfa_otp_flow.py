"""Demo: walk the urn:custom:mfa-otp grant using FastAPI TestClient.

Run with:
    python scripts/demo_mfa_otp_flow.py
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import create_app
from app.repos.in_memory_model import InMemoryModel
from app.services.grant_service import OAuth2Server
from app.services.grants import MFA_OTP_GRANT_TYPE

CLIENT_ID = "demo-client"
CLIENT_SECRET = "demo-secret"
USER_ID = "demo-user"
OTP = "123456"


def main() -> None:
    model = InMemoryModel()
    model.register_client(
        CLIENT_ID,
        CLIENT_SECRET,
        grants=frozenset([MFA_OTP_GRANT_TYPE]),
        scopes=frozenset(["profile"]),
    )
    server = OAuth2Server(model=model, grants=[MFA_OTP_GRANT_TYPE, "refresh_token"])
    client = TestClient(create_app(server))

    base = {
        "grant_type": MFA_OTP_GRANT_TYPE,
        "client_id": CLIENT_ID,
        "client_secret": CLIENT_SECRET,
    }

    # ── Step 1: missing mfa_token ───────────────────────────────────
    r = client.post("/oauth/token", data={**base, "otp": OTP})
    print(f"1. no mfa_token   → {r.status_code}  {r.json()['error_description']}")

    # ── Step 2: wrong OTP ───────────────────────────────────────────
    mfa_token = model.open_mfa_challenge(user_id=USER_ID, client_id=CLIENT_ID, otp=OTP)
    r = client.post(
        "/oauth/token", data={**base, "otp": "000000", "mfa_token": mfa_token}
    )
    print(f"2. wrong otp      → {r.status_code}  {r.json()['error_description']}")

    # ── Step 3: correct OTP ─────────────────────────────────────────
    r = client.post(
        "/oauth/token",
        data={**base, "otp": OTP, "mfa_token": mfa_token, "scope": "profile"},
    )
    body = r.json()
    print(f"3. correct otp    → {r.status_code}  expires_in={body['expires_in']}")
    print(f"   access_token   = {body['access_token'][:24]}…")
    print(f"   refresh_token  = {body['refresh_token'][:24]}…")

    # ── Step 4: replay the same challenge ───────────────────────────
    r = client.post("/oauth/token", data={**base, "otp": OTP, "mfa_token": mfa_token})
    print(f"4. replay         → {r.status_code}  {r.json()['error_description']}")


if __name__ == "__main__":
    main()
