from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import urlopen

import bcrypt
from jose import JWTError, jwt

from financepro import config

logger = logging.getLogger(__name__)


class InvalidTokenError(ValueError):
    """Raised when an access token cannot be decoded or is expired."""


class GoogleAuthError(RuntimeError):
    """Raised when a Google access token cannot be exchanged for a profile."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    expires_at: datetime


@dataclass(frozen=True)
class GoogleProfile:
    email: str
    name: str | None = None
    picture: str | None = None


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(
    user_id: int,
    username: str,
    expires_delta: timedelta | None = None,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    claims = {"sub": str(user_id), "username": username, "exp": expire}
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError("Invalid or expired token.") from exc

    try:
        user_id = int(payload["sub"])
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError("Malformed token claims.") from exc
    return TokenClaims(
        user_id=user_id,
        username=str(payload.get("username") or ""),
        expires_at=expires_at,
    )


def fetch_google_profile(access_token: str) -> GoogleProfile:
    """Exchange a Google OAuth access token for the signed-in user's profile."""
    url = f"{config.GOOGLE_USERINFO_URL}?{urlencode({'access_token': access_token})}"
    try:
        with urlopen(url, timeout=config.GOOGLE_TIMEOUT_SECONDS) as response:
            payload = json.load(response)
    except (HTTPError, URLError, TimeoutError, json.JSONDecodeError) as exc:
        logger.warning("Google user-info request failed: %s", exc)
        raise GoogleAuthError("Google authentication failed") from exc

    if not isinstance(payload, dict) or not payload.get("email"):
        raise GoogleAuthError("Invalid Google token")
    return GoogleProfile(
        email=str(payload["email"]).strip().lower(),
        name=payload.get("name"),
        picture=payload.get("picture"),
    )


def username_from_email(email: str, suffix: int | None = None) -> str:
    local_part = email.split("@", 1)[0].strip().lower() or "user"
    if suffix is None:
        suffix = secrets.randbelow(1000)
    return f"{local_part}{suffix}"
