from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from app.models.client import Client

# Form fields lifted onto TokenRequest; everything else stays in `form`.
# •	grant_type: str
# •	client_id / client_secret: body fields or HTTP Basic credentials
# •	otp, mfa_token: urn:custom:mfa-otp only
# •	scope: space-delimited, optional


@dataclass(frozen=True, slots=True)
class TokenRequest:
    method: str
    content_type: str
    grant_type: str | None
    client_id: str | None
    client_secret: str | None
    otp: str | None = None
    mfa_token: str | None = None
    scope: str | None = None
    form: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    # Set by the engine once get_client succeeds (dataclasses.replace).
    client: Client | None = None

    @property
    def is_form_post(self) -> bool:
        media_type = self.content_type.split(";", 1)[0].strip().lower()
        return (
            self.method.upper() == "POST"
            and media_type == "application/x-www-form-urlencoded"
        )

    @staticmethod
    def from_form(
        *,
        method: str,
        content_type: str,
        form: Mapping[str, str],
        headers: Mapping[str, str] | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
    ) -> TokenRequest:
        # Explicit credentials (HTTP Basic) win over body fields.
        return TokenRequest(
            method=method,
            content_type=content_type,
            grant_type=form.get("grant_type"),
            client_id=client_id if client_id is not None else form.get("client_id"),
            client_secret=(
                client_secret
                if client_secret is not None
                else form.get("client_secret")
            ),
            otp=form.get("otp"),
            mfa_token=form.get("mfa_token"),
            scope=form.get("scope"),
            form=dict(form),
            headers=dict(headers or {}),
        )
