"""
Football Academy Backend — Authentication Service
===================================================

What:  Login, token refresh, bearer-token resolution, password change and
       the bootstrap admin.
Who:   /api/auth router, the get_current_user dependency, app lifespan.

Login outcomes:
    unknown user / wrong password → 401 "Invalid credentials"
    deactivated account           → 403 "Account is deactivated"
    success                       → last_login stamped, access + refresh tokens
"""

import logging
from typing import Dict, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.config import settings
from academy.database import utcnow
from academy.exceptions import AuthenticationError, PermissionDeniedError, ValidationError
from academy.models.user import Role, User
from academy.services.security import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    subject_id,
    verify_password,
)
from academy.services.user_service import user_service

logger = logging.getLogger(__name__)

# What each role may do, as reported by GET /api/auth/permissions.
# Enforcement lives in AccessPolicy; this table is for the frontend menus.
ROLE_PERMISSIONS: Dict[str, List[str]] = {
    Role.ADMIN.value: [
        "users:manage",
        "teams:manage",
        "players:manage",
        "trainings:manage",
        "attendance:record",
        "matches:manage",
        "billing:manage",
        "billing:plans",
        "announcements:manage",
        "messages:broadcast",
        "injuries:manage",
        "development:manage",
        "reports:view",
    ],
    Role.COACH.value: [
        "teams:own",
        "players:own_team",
        "trainings:own_team",
        "attendance:record",
        "matches:own_team",
        "billing:manage",
        "announcements:manage",
        "messages:broadcast",
        "injuries:own_team",
        "development:own_team",
        "reports:view",
    ],
    Role.PARENT.value: [
        "players:children",
        "trainings:children",
        "matches:view",
        "billing:children",
        "announcements:view",
        "messages:send",
        "injuries:children",
        "development:children",
    ],
    Role.PLAYER.value: [
        "players:self",
        "trainings:own_team",
        "matches:view",
        "announcements:view",
        "messages:send",
        "injuries:self",
        "development:self",
    ],
}


class AuthService:

    async def login(
        self, db: AsyncSession, identifier: str, password: str
    ) -> Tuple[User, str, str]:
        user = await user_service.find_by_login(db, identifier)
        # Same message for unknown user and wrong password (no account probing)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login for '%s'", identifier)
            raise AuthenticationError("Invalid credentials")
        if not user.active:
            logger.warning("Login attempt on deactivated account %s", user.username)
            raise PermissionDeniedError("Account is deactivated")

        user.last_login = utcnow()
        await db.flush()
        logger.info("User %s logged in (role=%s)", user.username, user.role)
        return user, create_access_token(user), create_refresh_token(user)

    async def refresh(self, db: AsyncSession, refresh_token: str) -> str:
        payload = decode_token(refresh_token, expected_type=REFRESH)
        user = await db.get(User, subject_id(payload))
        if user is None or not user.active:
            raise AuthenticationError("Invalid token")
        return create_access_token(user)

    async def resolve_token(self, db: AsyncSession, token: str) -> User:
        """
        Bearer token → live User row.

        Reloading the row means a deactivated account is locked out on its
        next request even while its token has not expired.
        """
        payload = decode_token(token)
        user = await db.get(User, subject_id(payload))
        if user is None:
            raise AuthenticationError("Invalid token")
        if not user.active:
            raise AuthenticationError("Account is deactivated")
        return user

    async def change_password(
        self, db: AsyncSession, user: User, current_password: str, new_password: str
    ) -> None:
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect", field="current_password")
        if current_password == new_password:
            raise ValidationError(
                "New password must differ from the current one", field="new_password"
            )
        user.password_hash = hash_password(new_password)
        await db.flush()
        logger.info("Password changed for %s", user.username)

    async def email_available(self, db: AsyncSession, email: str) -> bool:
        return not await user_service.email_taken(db, email)

    def permissions_for(self, role: str) -> List[str]:
        return list(ROLE_PERMISSIONS.get(role, []))

    async def seed_admin(self, db: AsyncSession) -> bool:
        """
        Create the bootstrap admin when no admin account exists.

        Returns True when an account was created.
        """
        result = await db.execute(select(User.id).where(User.role == Role.ADMIN.value).limit(1))
        if result.first() is not None:
            return False

        taken = await db.execute(select(User.id).where(User.username == settings.admin_username))
        if taken.first() is not None:
            logger.error(
                "Cannot seed admin: username '%s' belongs to a non-admin account",
                settings.admin_username,
            )
            return False

        db.add(
            User(
                username=settings.admin_username,
                email=settings.admin_email.lower(),
                password_hash=hash_password(settings.admin_password),
                full_name=settings.admin_full_name,
                role=Role.ADMIN.value,
            )
        )
        await db.flush()
        logger.info("Bootstrap admin '%s' created", settings.admin_username)
        return True


auth_service = AuthService()
