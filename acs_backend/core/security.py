"""
Security helpers for password hashing and JWT access tokens.
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

from .config import Settings, get_app_env


class TokenExpired(ValueError):
    pass


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    salt = secrets.token_hex(16)
    rounds = int(os.getenv("ACS_PASSWORD_HASH_ROUNDS", "120000"))
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), rounds)
    return f"pbkdf2_sha256${rounds}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algo, rounds_raw, salt, expected_hex = encoded.split("$", 3)
        if algo != "pbkdf2_sha256":
            return False
        rounds = int(rounds_raw)
    except Exception:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), rounds)
    return secrets.compare_digest(digest.hex(), expected_hex)


def jwt_secret(settings: Settings) -> str:
    secret = (settings.jwt_secret or "").strip()
    if secret:
        return secret
    if get_app_env() == "prod":
        return ""
    return "dev-jwt-secret-change-me"


def create_access_token(*, user_id: int, username: str, secret: str, ttl_minutes: int) -> str:
    if not secret:
        raise RuntimeError("ACS_JWT_SECRET is required")
    now = datetime.now(timezone.utc)
    payload = {
        "id": str(user_id),
        "username": username,
        # Two logins within the same second must still yield distinct tokens.
        "jti": secrets.token_hex(8),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=max(1, ttl_minutes))).timestamp()),
    }
    header = {"alg": "HS256", "typ": "JWT"}
    signing_input = (
        f"{_b64url_encode(json.dumps(header, separators=(',', ':')).encode('utf-8'))}."
        f"{_b64url_encode(json.dumps(payload, separators=(',', ':')).encode('utf-8'))}"
    )
    signature = hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()
    return f"{signing_input}.{_b64url_encode(signature)}"


def decode_access_token(token: str, *, secret: str) -> dict[str, Any]:
    if not secret:
        raise ValueError("JWT secret not configured")
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError("Malformed token")
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}"
    try:
        expected_sig = hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()
        provided_sig = _b64url_decode(signature_b64)
    except (UnicodeEncodeError, ValueError) as exc:
        raise ValueError("Malformed token") from exc
    if not secrets.compare_digest(expected_sig, provided_sig):
        raise ValueError("Invalid signature")
    try:
        payload = json.loads(_b64url_decode(payload_b64).decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise ValueError("Invalid payload") from exc
    if not isinstance(payload, dict):
        raise ValueError("Invalid payload")
    exp = int(payload.get("exp") or 0)
    if exp <= 0:
        raise ValueError("Missing exp")
    now_ts = int(datetime.now(timezone.utc).timestamp())
    if now_ts >= exp:
        raise TokenExpired("Token expired")
    return payload
