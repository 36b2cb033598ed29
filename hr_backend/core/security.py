"""
Password hashing and signed session tokens.

Passwords are stored as `pbkdf2_sha256$<rounds>$<salt>$<hex digest>`.
Session tokens are compact HS256 JWTs carrying the principal claims built by
`services.sessions`.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

PASSWORD_SCHEME = "pbkdf2_sha256"
DEFAULT_HASH_ROUNDS = 120000
DEFAULT_TOKEN_MINUTES = 7 * 24 * 60
TOKEN_HEADER = {"alg": "HS256", "typ": "JWT"}
DEV_FALLBACK_SECRET = "dev-jwt-secret-change-me"


class TokenInvalid(ValueError):
    pass


class TokenExpired(TokenInvalid):
    pass


def _hash_rounds() -> int:
    try:
        return max(1000, int(os.getenv("HR_PASSWORD_HASH_ROUNDS", str(DEFAULT_HASH_ROUNDS))))
    except ValueError:
        return DEFAULT_HASH_ROUNDS


def _pbkdf2(password: str, salt: str, rounds: int) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), rounds).hex()


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    rounds = _hash_rounds()
    salt = secrets.token_hex(16)
    return "$".join((PASSWORD_SCHEME, str(rounds), salt, _pbkdf2(password, salt, rounds)))


def verify_password(password: str, encoded: str) -> bool:
    """Constant-time check of `password` against a stored hash; malformed hashes never match."""
    parts = (encoded or "").split("$")
    if len(parts) != 4 or parts[0] != PASSWORD_SCHEME or not parts[1].isdigit():
        return False
    _, rounds, salt, expected = parts
    try:
        return hmac.compare_digest(_pbkdf2(password or "", salt, int(rounds)), expected)
    except (TypeError, ValueError):
        return False


def _signing_secret() -> str:
    configured = (os.getenv("HR_JWT_SECRET") or "").strip()
    if configured:
        return configured
    env = (os.getenv("HR_ENV") or os.getenv("APP_ENV") or "dev").strip().lower()
    return "" if env == "prod" else DEV_FALLBACK_SECRET


def _token_lifetime() -> timedelta:
    try:
        minutes = int(os.getenv("HR_JWT_EXP_MIN", str(DEFAULT_TOKEN_MINUTES)))
    except ValueError:
        minutes = DEFAULT_TOKEN_MINUTES
    return timedelta(minutes=max(1, minutes))


def _encode_segment(data: dict[str, Any]) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _decode_segment(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _signature(secret: str, header_segment: str, payload_segment: str) -> bytes:
    message = f"{header_segment}.{payload_segment}".encode("ascii")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(claims: dict[str, Any], *, expires_in: timedelta | None = None) -> str:
    secret = _signing_secret()
    if not secret:
        raise RuntimeError("HR_JWT_SECRET is required")
    issued = datetime.now(timezone.utc)
    expires = issued + (expires_in if expires_in is not None else _token_lifetime())
    payload = {**claims, "iat": int(issued.timestamp()), "exp": int(expires.timestamp())}
    header_segment = _encode_segment(TOKEN_HEADER)
    payload_segment = _encode_segment(payload)
    signature = base64.urlsafe_b64encode(_signature(secret, header_segment, payload_segment)).rstrip(b"=")
    return f"{header_segment}.{payload_segment}.{signature.decode('ascii')}"


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify the signature and expiry of `token` and return its claims.

    Raises TokenExpired for a well-signed token past `exp` and TokenInvalid
    for everything else.
    """
    secret = _signing_secret()
    if not secret:
        raise TokenInvalid("JWT secret not configured")
    try:
        header_segment, payload_segment, signature_segment = token.split(".")
        header = json.loads(_decode_segment(header_segment))
        signature = _decode_segment(signature_segment)
        expected = _signature(secret, header_segment, payload_segment)
        claims = json.loads(_decode_segment(payload_segment))
    except (ValueError, UnicodeError) as exc:
        raise TokenInvalid("Malformed token") from exc
    if not isinstance(header, dict) or header.get("alg") != TOKEN_HEADER["alg"]:
        raise TokenInvalid("Unsupported token algorithm")
    if not hmac.compare_digest(expected, signature):
        raise TokenInvalid("Invalid signature")
    if not isinstance(claims, dict):
        raise TokenInvalid("Invalid payload")
    try:
        exp = int(claims.get("exp") or 0)
    except (TypeError, ValueError) as exc:
        raise TokenInvalid("Invalid exp") from exc
    if exp <= 0:
        raise TokenInvalid("Missing exp")
    if datetime.now(timezone.utc).timestamp() >= exp:
        raise TokenExpired("Token expired")
    return claims
