"""
Football Academy Backend — Role & Scope Checks
================================================

What:  Answers "may this user see or change this team/player?" for every
       service.
How:   Role first, then scope. Admins pass everything; coaches are scoped
       to users.team_id and player accounts to the team of their linked
       roster record; parents are scoped to the players linked through
       active parent_child_relationships rows.

Scope table:
    role     team access                       player access
    admin    all                               all
    coach    user.team_id                      players in user.team_id
    player   team of the linked player record  own record (user.player_id)
    parent   teams of linked children          linked children

The ensure_* variants raise PermissionDeniedError; the can_* variants
return a bool for callers that filter instead of failing.
"""

import logging
from typing import Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.exceptions import PermissionDeniedError
from academy.models.player import ParentChildRelationship, Player
from academy.models.user import Role, User

logger = logging.getLogger(__name__)

STAFF_ROLES = (Role.ADMIN.value, Role.COACH.value)


class AccessPolicy:

    # ── Roles ─────────────────────────────────────────────────────────────

    def require_roles(self, user: User, *roles: str) -> None:
        if user.role not in roles:
            logger.info(
                "Denied %s (role=%s); requires one of %s", user.username, user.role, roles
            )
            raise PermissionDeniedError(
                "Insufficient permissions",
                context={"required_roles": list(roles), "role": user.role},
            )

    def is_staff(self, user: User) -> bool:
        return user.role in STAFF_ROLES

    # ── Family Links ──────────────────────────────────────────────────────

    async def child_ids(self, db: AsyncSession, parent_id: int) -> Set[int]:
        result = await db.execute(
            select(ParentChildRelationship.child_id).where(
                ParentChildRelationship.parent_id == parent_id,
                ParentChildRelationship.active.is_(True),
            )
        )
        return set(result.scalars().all())

    # ── Teams ─────────────────────────────────────────────────────────────

    async def visible_team_ids(self, db: AsyncSession, user: User) -> Optional[Set[int]]:
        """
        Team ids whose data the user may read. None means "all teams" (admin).
        """
        if user.role == Role.ADMIN.value:
            return None
        if user.role == Role.PARENT.value:
            children = await self.child_ids(db, user.id)
            if not children:
                return set()
            result = await db.execute(
                select(Player.team_id).where(
                    Player.id.in_(children), Player.team_id.is_not(None)
                )
            )
            return set(result.scalars().all())
        if user.role == Role.PLAYER.value:
            team_id = await self.player_team_id(db, user)
            return {team_id} if team_id is not None else set()
        return {user.team_id} if user.team_id is not None else set()

    async def player_team_id(self, db: AsyncSession, user: User) -> Optional[int]:
        """A player account follows its linked roster record, not its own team column."""
        if user.player_id is None:
            return user.team_id
        record = await db.get(Player, user.player_id)
        return record.team_id if record is not None else None

    async def can_access_team(self, db: AsyncSession, user: User, team_id: int) -> bool:
        visible = await self.visible_team_ids(db, user)
        return visible is None or team_id in visible

    async def ensure_team_access(self, db: AsyncSession, user: User, team_id: int) -> None:
        if not await self.can_access_team(db, user, team_id):
            raise PermissionDeniedError(
                "You do not have access to this team", context={"team_id": team_id}
            )

    def ensure_team_staff(self, user: User, team_id: Optional[int]) -> None:
        """Write access to a team's data: admin, or the team's own coach."""
        self.require_roles(user, *STAFF_ROLES)
        if user.role == Role.COACH.value and (team_id is None or user.team_id != team_id):
            raise PermissionDeniedError(
                "Coaches can only manage their own team", context={"team_id": team_id}
            )

    # ── Players ───────────────────────────────────────────────────────────

    async def can_access_player(self, db: AsyncSession, user: User, player: Player) -> bool:
        if user.role == Role.ADMIN.value:
            return True
        if user.role == Role.COACH.value:
            return user.team_id is not None and player.team_id == user.team_id
        if user.role == Role.PLAYER.value:
            return user.player_id == player.id
        if user.role == Role.PARENT.value:
            return player.id in await self.child_ids(db, user.id)
        return False

    async def ensure_player_access(self, db: AsyncSession, user: User, player: Player) -> None:
        if not await self.can_access_player(db, user, player):
            raise PermissionDeniedError(
                "You do not have access to this player", context={"player_id": player.id}
            )

    async def visible_player_ids(self, db: AsyncSession, user: User) -> Optional[Set[int]]:
        """Player ids the user may read individually. None means all."""
        if user.role == Role.ADMIN.value:
            return None
        if user.role == Role.PARENT.value:
            return await self.child_ids(db, user.id)
        if user.role == Role.PLAYER.value:
            return {user.player_id} if user.player_id is not None else set()
        if user.team_id is None:
            return set()
        result = await db.execute(select(Player.id).where(Player.team_id == user.team_id))
        return set(result.scalars().all())


access_policy = AccessPolicy()
