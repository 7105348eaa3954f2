"""
Football Academy Backend — Shared Route Dependencies
======================================================

What:  Bearer-token authentication and role gates for route handlers.
How:   HTTPBearer(auto_error=False) so a missing header reaches our own
       AuthenticationError (401 + WWW-Authenticate) instead of FastAPI's
       default 403.
"""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.exceptions import AuthenticationError
from academy.models.user import User
from academy.services.access import access_policy
from academy.services.auth_service import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    if credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Invalid token")
    return await auth_service.resolve_token(db, credentials.credentials)


def require_roles(*roles: str) -> Callable:
    """
    Dependency factory: `user: User = Depends(require_roles("admin"))`.
    """

    async def dependency(user: User = Depends(get_current_user)) -> User:
        access_policy.require_roles(user, *roles)
        return user

    return dependency
