from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MfaChallenge:
    """A pending second-factor check, addressed by its mfa_token.

    Only a digest of the expected OTP is held.  The model deletes the
    challenge once it is verified or has expired.
    """

    mfa_token: str
    user_id: str
    client_id: str
    otp_digest: str
    expires_at: int
