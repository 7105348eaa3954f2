"""
Football Academy Backend — Player Service
===========================================

What:  Player CRUD, age lookup, parent links and profile photos.
Who:   /api/players router, dashboard.

Scope:
    admin  → every player
    coach  → players of their own team; creates only into that team
    parent → linked children (read only)
    player → own record (read only)
"""

import logging
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from academy.models.player import ParentChildRelationship, Player
from academy.models.team import Team
from academy.models.user import Role, User
from academy.schemas.player import (
    AssignParentRequest,
    PlayerAgeResponse,
    PlayerCreate,
    PlayerUpdate,
)
from academy.services.access import STAFF_ROLES, access_policy
from academy.services.file_service import file_service

logger = logging.getLogger(__name__)


class PlayerService:

    async def get_player(self, db: AsyncSession, player_id: int) -> Player:
        player = await db.get(Player, player_id)
        if player is None:
            raise NotFoundError(resource="Player", resource_id=player_id)
        return player

    async def get_player_for(self, db: AsyncSession, user: User, player_id: int) -> Player:
        player = await self.get_player(db, player_id)
        await access_policy.ensure_player_access(db, user, player)
        return player

    async def _ensure_team_exists(self, db: AsyncSession, team_id: Optional[int]) -> None:
        if team_id is not None and await db.get(Team, team_id) is None:
            raise ValidationError(f"Team {team_id} does not exist", field="team_id")

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_players(
        self,
        db: AsyncSession,
        user: User,
        team_id: Optional[int] = None,
        position: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Player]:
        access_policy.require_roles(user, *STAFF_ROLES)
        stmt = select(Player)
        if user.role == Role.COACH.value:
            if user.team_id is None:
                return []
            if team_id is not None and team_id != user.team_id:
                raise PermissionDeniedError(
                    "You do not have access to this team", context={"team_id": team_id}
                )
            stmt = stmt.where(Player.team_id == user.team_id)
        elif team_id is not None:
            stmt = stmt.where(Player.team_id == team_id)
        if position:
            stmt = stmt.where(Player.position == position)
        if search:
            stmt = stmt.where(func.lower(Player.name).like(f"%{search.strip().lower()}%"))
        result = await db.execute(stmt.order_by(Player.name))
        return list(result.scalars().all())

    async def by_team(self, db: AsyncSession, user: User, team_id: int) -> List[Player]:
        if await db.get(Team, team_id) is None:
            raise NotFoundError(resource="Team", resource_id=team_id)
        await access_policy.ensure_team_access(db, user, team_id)
        result = await db.execute(
            select(Player).where(Player.team_id == team_id).order_by(Player.name)
        )
        return list(result.scalars().all())

    async def age(
        self, db: AsyncSession, user: User, player_id: int, today: Optional[date] = None
    ) -> PlayerAgeResponse:
        player = await self.get_player_for(db, user, player_id)
        return PlayerAgeResponse(
            player_id=player.id,
            name=player.name,
            birth_date=player.birth_date,
            age=player.age_on(today or date.today()),
        )

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_player(self, db: AsyncSession, user: User, data: PlayerCreate) -> Player:
        access_policy.require_roles(user, *STAFF_ROLES)
        team_id = data.team_id
        if user.role == Role.COACH.value:
            if team_id is None:
                team_id = user.team_id
            access_policy.ensure_team_staff(user, team_id)
        await self._ensure_team_exists(db, team_id)

        player = Player(**data.model_dump(exclude={"team_id"}), team_id=team_id)
        if player.parent_email:
            player.parent_email = player.parent_email.lower()
        db.add(player)
        await db.flush()
        logger.info("Player created: %s (id=%d, team=%s)", player.name, player.id, team_id)
        return player

    async def update_player(
        self, db: AsyncSession, user: User, player_id: int, data: PlayerUpdate
    ) -> Player:
        access_policy.require_roles(user, *STAFF_ROLES)
        player = await self.get_player_for(db, user, player_id)
        changes = data.model_dump(exclude_unset=True)

        if "team_id" in changes and changes["team_id"] != player.team_id:
            if user.role == Role.COACH.value:
                # Coaches hand players over through the admin
                raise PermissionDeniedError("Coaches cannot move players between teams")
            await self._ensure_team_exists(db, changes["team_id"])
        for field, value in changes.items():
            if value is None and field in ("name", "birth_date"):
                continue
            setattr(player, field, value)
        await db.flush()
        return player

    async def delete_player(
        self, db: AsyncSession, user: User, player_id: int
    ) -> Optional[str]:
        """
        Delete the record and return its stored photo path, if any.

        The caller removes the file once the transaction has committed.
        """
        access_policy.require_roles(user, Role.ADMIN.value)
        player = await self.get_player(db, player_id)
        photo = player.profile_image
        await db.delete(player)
        await db.flush()
        logger.info("Player %d deleted by %s", player_id, user.username)
        return photo

    # ── Parents ───────────────────────────────────────────────────────────

    async def assign_parent(
        self, db: AsyncSession, user: User, player_id: int, data: AssignParentRequest
    ) -> ParentChildRelationship:
        access_policy.require_roles(user, *STAFF_ROLES)
        player = await self.get_player_for(db, user, player_id)
        parent = await db.get(User, data.parent_user_id)
        if parent is None:
            raise NotFoundError(resource="User", resource_id=data.parent_user_id)
        if parent.role != Role.PARENT.value or not parent.active:
            raise ValidationError("User is not an active parent", field="parent_user_id")

        result = await db.execute(
            select(ParentChildRelationship).where(
                ParentChildRelationship.parent_id == parent.id,
                ParentChildRelationship.child_id == player.id,
            )
        )
        link = result.scalar_one_or_none()
        if link is None:
            link = ParentChildRelationship(parent_id=parent.id, child_id=player.id)
            db.add(link)
        link.relationship_type = data.relationship_type
        link.primary_contact = data.primary_contact
        link.active = True
        await db.flush()
        logger.info("Parent %s linked to player %d", parent.username, player.id)
        return link

    async def remove_parent(
        self, db: AsyncSession, user: User, player_id: int, parent_id: int
    ) -> None:
        access_policy.require_roles(user, *STAFF_ROLES)
        await self.get_player_for(db, user, player_id)
        result = await db.execute(
            select(ParentChildRelationship).where(
                ParentChildRelationship.parent_id == parent_id,
                ParentChildRelationship.child_id == player_id,
                ParentChildRelationship.active.is_(True),
            )
        )
        link = result.scalar_one_or_none()
        if link is None:
            raise NotFoundError(resource="Parent link", resource_id=f"{parent_id}/{player_id}")
        link.active = False
        await db.flush()

    async def parents_of(self, db: AsyncSession, user: User, player_id: int) -> List[User]:
        await self.get_player_for(db, user, player_id)
        result = await db.execute(
            select(User)
            .join(ParentChildRelationship, ParentChildRelationship.parent_id == User.id)
            .where(
                ParentChildRelationship.child_id == player_id,
                ParentChildRelationship.active.is_(True),
            )
            .order_by(User.full_name, User.username)
        )
        return list(result.scalars().all())

    async def children_of(self, db: AsyncSession, user: User, parent_id: int) -> List[Player]:
        if user.role != Role.ADMIN.value and not (
            user.role == Role.PARENT.value and user.id == parent_id
        ):
            raise PermissionDeniedError("You can only view your own children")
        child_ids = await access_policy.child_ids(db, parent_id)
        if not child_ids:
            return []
        result = await db.execute(
            select(Player).where(Player.id.in_(child_ids)).order_by(Player.name)
        )
        return list(result.scalars().all())

    # ── Photos ────────────────────────────────────────────────────────────

    async def upload_photo(
        self,
        db: AsyncSession,
        user: User,
        player_id: int,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[Player, Optional[str]]:
        """
        Store a new photo and point the record at it.

        Returns the player and the path of the photo it replaced; the caller
        removes that file once the transaction has committed.
        """
        access_policy.require_roles(user, *STAFF_ROLES)
        player = await self.get_player_for(db, user, player_id)
        new_path = await file_service.validate_and_store(filename, content, content_length)

        previous = player.profile_image
        player.profile_image = new_path
        try:
            await db.flush()
        except Exception:
            # Row was not updated: the new file is an orphan
            await file_service.cleanup_file(new_path)
            raise
        logger.info("Photo for player %d stored at %s", player_id, new_path)
        return player, previous if previous != new_path else None

    async def photo_path(self, db: AsyncSession, user: User, player_id: int) -> Path:
        player = await self.get_player_for(db, user, player_id)
        if not player.profile_image:
            raise NotFoundError(resource="Player photo", resource_id=player_id)
        return file_service.resolve(player.profile_image)


player_service = PlayerService()
