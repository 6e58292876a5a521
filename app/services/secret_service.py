from __future__ import annotations

import hashlib
import hmac

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

# Client secrets are long-lived credentials: argon2, like passwords.
# OTPs are short-lived and single-use: a plain digest is enough.
_ph = PasswordHasher()


def hash_client_secret(plain_secret: str) -> str:
    if not plain_secret:
        raise ValueError("client secret must be non-empty")
    # Argon2 includes salt+params in the returned encoded string.
    return _ph.hash(plain_secret)


def verify_client_secret(plain_secret: str | None, secret_hash: str) -> bool:
    if not plain_secret or not secret_hash:
        return False
    try:
        return _ph.verify(secret_hash, plain_secret)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


def digest_otp(otp: str) -> str:
    return hashlib.sha256(otp.encode()).hexdigest()


def verify_otp(otp: str, expected_digest: str) -> bool:
    # constant-time compare
    return hmac.compare_digest(digest_otp(otp), expected_digest)
