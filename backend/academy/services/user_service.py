"""
Football Academy Backend — User Account Service
=================================================

What:  Admin-side account management: create, list, update, deactivate,
       statistics; plus the self-service profile edit.
Who:   /api/users router, POST /api/auth/register and /api/profile.

Rules:
    - username and email are unique (case-insensitive for email)
    - a coach's team_id and a player's player_id must point at existing rows
    - a team has at most one coach; assigning a coach detaches the previous one
    - "delete" is a soft delete (active=False); an admin cannot deactivate
      their own account
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from academy.models.player import Player
from academy.models.team import Team
from academy.models.user import ROLE_VALUES, Role, User
from academy.schemas.user import ProfileUpdate, UserCreate, UserStatistics, UserUpdate
from academy.services.security import hash_password

logger = logging.getLogger(__name__)


class UserService:

    async def get_user(self, db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id)
        return user

    async def find_by_login(self, db: AsyncSession, identifier: str) -> Optional[User]:
        """Look up by username, or by email when the identifier contains '@'."""
        ident = identifier.strip()
        if "@" in ident:
            condition = func.lower(User.email) == ident.lower()
        else:
            condition = User.username == ident
        result = await db.execute(select(User).where(condition))
        return result.scalar_one_or_none()

    async def email_taken(
        self, db: AsyncSession, email: str, exclude_id: Optional[int] = None
    ) -> bool:
        stmt = select(User.id).where(func.lower(User.email) == email.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return (await db.execute(stmt)).first() is not None

    async def _check_links(
        self, db: AsyncSession, team_id: Optional[int], player_id: Optional[int]
    ) -> None:
        if team_id is not None and await db.get(Team, team_id) is None:
            raise ValidationError(f"Team {team_id} does not exist", field="team_id")
        if player_id is not None and await db.get(Player, player_id) is None:
            raise ValidationError(f"Player {player_id} does not exist", field="player_id")

    async def _take_over_team(self, db: AsyncSession, coach: User) -> None:
        """A team has at most one coach; the newcomer replaces whoever held it."""
        if coach.role != Role.COACH.value or coach.team_id is None:
            return
        stmt = select(User).where(User.role == Role.COACH.value, User.team_id == coach.team_id)
        if coach.id is not None:
            stmt = stmt.where(User.id != coach.id)
        for previous in (await db.execute(stmt)).scalars().all():
            previous.team_id = None
            logger.info("Coach %s detached from team %d", previous.username, coach.team_id)

    async def list_users(
        self,
        db: AsyncSession,
        role: Optional[str] = None,
        active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[User]:
        stmt = select(User)
        if role:
            if role not in ROLE_VALUES:
                raise ValidationError(f"Unknown role '{role}'", field="role")
            stmt = stmt.where(User.role == role)
        if active is not None:
            stmt = stmt.where(User.active.is_(active))
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(User.username).like(pattern),
                    func.lower(User.email).like(pattern),
                    func.lower(func.coalesce(User.full_name, "")).like(pattern),
                )
            )
        result = await db.execute(stmt.order_by(User.role, User.username))
        return list(result.scalars().all())

    async def create_user(self, db: AsyncSession, data: UserCreate) -> User:
        existing = await db.execute(select(User.id).where(User.username == data.username))
        if existing.first() is not None:
            raise ConflictError(
                f"Username '{data.username}' is already taken", context={"field": "username"}
            )
        if await self.email_taken(db, data.email):
            raise ConflictError("Email is already registered", context={"field": "email"})
        await self._check_links(db, data.team_id, data.player_id)

        user = User(
            username=data.username,
            email=data.email.lower(),
            password_hash=hash_password(data.password),
            full_name=data.full_name,
            role=data.role,
            team_id=data.team_id if data.role in (Role.COACH.value, Role.PLAYER.value) else None,
            player_id=data.player_id if data.role == Role.PLAYER.value else None,
        )
        await self._take_over_team(db, user)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same name
            raise ConflictError(
                "Username or email is already registered",
                context={"original_error": type(e).__name__},
            )
        logger.info("User created: %s (role=%s, id=%d)", user.username, user.role, user.id)
        return user

    async def update_user(
        self, db: AsyncSession, actor: User, user_id: int, data: UserUpdate
    ) -> User:
        user = await self.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True)

        if "email" in changes and changes["email"] is not None:
            if await self.email_taken(db, changes["email"], exclude_id=user.id):
                raise ConflictError("Email is already registered", context={"field": "email"})
            changes["email"] = changes["email"].lower()
        new_role = changes.get("role")
        if actor.id == user.id and (
            changes.get("active") is False
            or (new_role is not None and new_role != Role.ADMIN.value)
        ):
            raise ValidationError("You cannot deactivate or demote your own account")
        await self._check_links(db, changes.get("team_id"), changes.get("player_id"))

        password = changes.pop("password", None)
        if password:
            user.password_hash = hash_password(password)
        for field, value in changes.items():
            if value is None and field in ("email", "role", "active"):
                continue
            setattr(user, field, value)
        await self._take_over_team(db, user)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to update user %d: %s", user_id, e)
            raise DatabaseError(context={"original_error": type(e).__name__})
        logger.info("User %d updated by %s: %s", user.id, actor.username, sorted(changes))
        return user

    async def update_profile(self, db: AsyncSession, user: User, data: ProfileUpdate) -> User:
        """The signed-in user edits their own username, email and name."""
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        username = changes.get("username")
        if username and username != user.username:
            taken = await db.execute(
                select(User.id).where(User.username == username, User.id != user.id)
            )
            if taken.first() is not None:
                raise ConflictError(
                    f"Username '{username}' is already taken", context={"field": "username"}
                )
        if "email" in changes:
            if await self.email_taken(db, changes["email"], exclude_id=user.id):
                raise ConflictError("Email is already registered", context={"field": "email"})
            changes["email"] = changes["email"].lower()

        for field, value in changes.items():
            setattr(user, field, value)
        try:
            await db.flush()
        except IntegrityError as e:
            raise ConflictError(
                "Username or email is already registered",
                context={"original_error": type(e).__name__},
            )
        logger.info("Profile of %s updated: %s", user.username, sorted(changes))
        return user

    async def deactivate_user(self, db: AsyncSession, actor: User, user_id: int) -> User:
        if actor.id == user_id:
            raise ValidationError("You cannot deactivate your own account")
        user = await self.get_user(db, user_id)
        user.active = False
        await db.flush()
        logger.info("User %d deactivated by %s", user_id, actor.username)
        return user

    async def statistics(self, db: AsyncSession) -> UserStatistics:
        result = await db.execute(
            select(User.role, User.active, func.count(User.id)).group_by(User.role, User.active)
        )
        by_role: Dict[str, int] = {role: 0 for role in ROLE_VALUES}
        active = inactive = 0
        for role, is_active, count in result.all():
            by_role[role] = by_role.get(role, 0) + count
            if is_active:
                active += count
            else:
                inactive += count
        return UserStatistics(
            total=active + inactive, active=active, inactive=inactive, by_role=by_role
        )


user_service = UserService()
