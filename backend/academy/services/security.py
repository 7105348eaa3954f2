"""
Football Academy Backend — Password Hashing & Token Service
=============================================================

What:  bcrypt password hashing (passlib) and JWT issue/verify (PyJWT).
How:   Access tokens carry the identity claims the frontend needs to render
       role-specific screens without an extra round-trip; refresh tokens
       carry only the subject and a type marker.

Token claims:
    access:  sub, type="access", username, email, role, team_id, player_id,
             iss, iat, exp (+ACCESS_TOKEN_EXPIRE_HOURS)
    refresh: sub, type="refresh", iss, iat, exp (+REFRESH_TOKEN_EXPIRE_DAYS)

The token is never the source of truth for permissions: the request
dependency reloads the user row so role changes and deactivation apply
immediately.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from academy.config import settings
from academy.exceptions import AuthenticationError
from academy.models.user import User

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Constant-time comparison; malformed hashes count as a mismatch."""
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        logger.warning("Stored password hash could not be parsed")
        return False


def _encode(claims: Dict[str, Any], lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iss": settings.jwt_issuer,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def access_token_lifetime_seconds() -> int:
    return settings.access_token_expire_hours * 3600


def create_access_token(user: User) -> str:
    return _encode(
        {
            "sub": str(user.id),
            "type": ACCESS,
            "username": user.username,
            "email": user.email,
            "role": user.role,
            "team_id": user.team_id,
            "player_id": user.player_id,
        },
        timedelta(hours=settings.access_token_expire_hours),
    )


def create_refresh_token(user: User) -> str:
    return _encode(
        {"sub": str(user.id), "type": REFRESH},
        timedelta(days=settings.refresh_token_expire_days),
    )


def decode_token(token: str, expected_type: Optional[str] = ACCESS) -> Dict[str, Any]:
    """
    Verify signature, expiry and issuer, then the token type.

    Raises:
        AuthenticationError("Token expired") when exp has passed
        AuthenticationError("Invalid token") for anything else
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected token: %s", e)
        raise AuthenticationError("Invalid token")

    if expected_type is not None and payload.get("type") != expected_type:
        raise AuthenticationError("Invalid token")
    return payload


def subject_id(payload: Dict[str, Any]) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token")
