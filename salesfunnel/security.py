"""Password hashing and signed session tokens."""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import hmac
import json
import secrets
import time
import uuid
from dataclasses import dataclass
from urllib.parse import urlsplit

from fastapi import Request


@dataclass(frozen=True)
class SessionUser:
    id: uuid.UUID
    email: str


def hash_password(password: str, iterations: int = 200_000) -> str:
    """Hash a password using PBKDF2-SHA256."""
    if not password:
        raise ValueError("Password is required")
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return (
        f"pbkdf2_sha256${iterations}$"
        f"{binascii.hexlify(salt).decode('ascii')}$"
        f"{binascii.hexlify(digest).decode('ascii')}"
    )


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a PBKDF2-SHA256 password hash."""
    if not password or not stored_hash:
        return False
    try:
        scheme, iterations_raw, salt_hex, digest_hex = stored_hash.split("$", 3)
        if scheme != "pbkdf2_sha256":
            return False
        iterations = int(iterations_raw)
        salt = binascii.unhexlify(salt_hex.encode("ascii"))
        expected = binascii.unhexlify(digest_hex.encode("ascii"))
    except (ValueError, binascii.Error):
        return False

    actual = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(actual, expected)


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, stored_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, stored_hash)


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * ((4 - (len(data) % 4)) % 4)
    return base64.urlsafe_b64decode((data + padding).encode("utf-8"))


def _secret(settings_obj) -> str:
    return str(getattr(settings_obj, "auth_secret", "") or "").strip()


def _ttl_seconds(settings_obj) -> int:
    ttl = int(getattr(settings_obj, "auth_session_ttl_seconds", 86400) or 86400)
    return max(60, ttl)


def _sign(secret: str, body: str) -> str:
    return hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_session_token(settings_obj, user: SessionUser) -> str:
    secret = _secret(settings_obj)
    if not secret:
        raise RuntimeError("auth_secret is required to issue sessions")

    now = int(time.time())
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "iat": now,
        "exp": now + _ttl_seconds(settings_obj),
    }
    body = _b64url_encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))
    return f"{body}.{_sign(secret, body)}"


def decode_session_token(settings_obj, token: str) -> SessionUser | None:
    secret = _secret(settings_obj)
    if not secret or not token:
        return None

    try:
        body, provided_sig = token.split(".", 1)
    except ValueError:
        return None

    if not hmac.compare_digest(provided_sig, _sign(secret, body)):
        return None

    try:
        payload = json.loads(_b64url_decode(body))
    except (ValueError, binascii.Error):
        return None

    if not isinstance(payload, dict):
        return None

    exp = payload.get("exp")
    if not isinstance(exp, int) or exp <= int(time.time()):
        return None
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        return None
    return SessionUser(id=user_id, email=str(payload.get("email") or ""))


def token_from_request(request: Request, settings_obj) -> str:
    cookie_token = request.cookies.get(settings_obj.auth_cookie_name, "")
    if cookie_token:
        return cookie_token

    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return ""


def current_user_from_request(request: Request, settings_obj) -> SessionUser | None:
    return decode_session_token(settings_obj, token_from_request(request, settings_obj))


def set_session_cookie(response, settings_obj, token: str) -> None:
    response.set_cookie(
        key=settings_obj.auth_cookie_name,
        value=token,
        max_age=_ttl_seconds(settings_obj),
        httponly=True,
        secure=bool(settings_obj.auth_cookie_secure),
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response, settings_obj) -> None:
    response.delete_cookie(settings_obj.auth_cookie_name, path="/")


def sanitize_next_path(raw_next: str, home_path: str) -> str:
    next_path = (raw_next or "").strip()
    if not next_path:
        return home_path
    if "\\" in next_path:
        return home_path
    parsed = urlsplit(next_path)
    if parsed.scheme or parsed.netloc:
        return home_path
    if not next_path.startswith("/") or next_path.startswith("//"):
        return home_path
    return next_path
