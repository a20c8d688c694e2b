"""Password hashing and signed access tokens."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import bcrypt
import jwt

BCRYPT_COST = 14
TOKEN_LIFETIME = timedelta(hours=2)
_ALGORITHM = "HS256"
_ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]
_FALLBACK_SECRET = "placeholder"


class TokenError(Exception):
    """Raised when a token cannot be verified."""


@dataclass(frozen=True)
class Claims:
    user_id: str
    role: str
    expires_at: Optional[datetime] = None


def _signing_key() -> str:
    return os.environ.get("JWT_SECRET") or _FALLBACK_SECRET


def hash_password(password: str) -> str:
    """Return a bcrypt hash of the password."""
    salt = bcrypt.gensalt(rounds=BCRYPT_COST)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def check_password_hash(password: str, hashed: str) -> bool:
    """Tell whether the password matches the stored hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def generate_token(user_id: Union[str, int], role: str) -> str:
    """Issue a signed token for the user that expires after two hours."""
    expires_at = datetime.now(timezone.utc) + TOKEN_LIFETIME
    payload = {"user_id": str(user_id), "role": role, "exp": expires_at}
    return jwt.encode(payload, _signing_key(), algorithm=_ALGORITHM)


def parse_token(token: str) -> Claims:
    """Verify a token and return its claims, raising TokenError if invalid."""
    try:
        payload = jwt.decode(token, _signing_key(), algorithms=_ACCEPTED_ALGORITHMS)
    except jwt.PyJWTError as exc:
        raise TokenError(str(exc)) from exc
    exp = payload.get("exp")
    expires_at = datetime.fromtimestamp(exp, timezone.utc) if exp is not None else None
    return Claims(
        user_id=str(payload.get("user_id", "")),
        role=str(payload.get("role", "")),
        expires_at=expires_at,
    )