"""
Football Academy Backend — Team Service
=========================================

What:  Team CRUD, roster moves and coach assignment.
How:   The roster is players.team_id; the coach is the active coach whose
       users.team_id points at the team. At most one coach per team:
       assigning a new one detaches the previous one.

Roster rules:
    - a team never exceeds max_players
    - coaches cannot pull a player out of another team; admins can
    - a team with players cannot be deleted
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.exceptions import ConflictError, NotFoundError, ValidationError
from academy.models.player import Player
from academy.models.team import Team
from academy.models.user import Role, User
from academy.schemas.team import CoachSummary, TeamCreate, TeamResponse, TeamUpdate
from academy.services.access import STAFF_ROLES, access_policy

logger = logging.getLogger(__name__)


class TeamService:

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_team(self, db: AsyncSession, team_id: int) -> Team:
        team = await db.get(Team, team_id)
        if team is None:
            raise NotFoundError(resource="Team", resource_id=team_id)
        return team

    async def player_count(self, db: AsyncSession, team_id: int) -> int:
        result = await db.execute(select(func.count(Player.id)).where(Player.team_id == team_id))
        return result.scalar_one()

    async def get_coach(self, db: AsyncSession, team_id: int) -> Optional[User]:
        result = await db.execute(
            select(User)
            .where(
                User.team_id == team_id,
                User.role == Role.COACH.value,
                User.active.is_(True),
            )
            .order_by(User.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def to_responses(self, db: AsyncSession, teams: List[Team]) -> List[TeamResponse]:
        """Attach player_count and coach with two batched queries."""
        if not teams:
            return []
        ids = [t.id for t in teams]
        counts: Dict[int, int] = dict(
            (
                await db.execute(
                    select(Player.team_id, func.count(Player.id))
                    .where(Player.team_id.in_(ids))
                    .group_by(Player.team_id)
                )
            ).all()
        )
        coaches: Dict[int, User] = {}
        coach_rows = await db.execute(
            select(User)
            .where(
                User.team_id.in_(ids),
                User.role == Role.COACH.value,
                User.active.is_(True),
            )
            .order_by(User.id)
        )
        for coach in coach_rows.scalars().all():
            coaches.setdefault(coach.team_id, coach)

        responses = []
        for team in teams:
            response = TeamResponse.model_validate(team)
            response.player_count = counts.get(team.id, 0)
            coach = coaches.get(team.id)
            response.coach = CoachSummary.model_validate(coach) if coach else None
            responses.append(response)
        return responses

    async def to_response(self, db: AsyncSession, team: Team) -> TeamResponse:
        return (await self.to_responses(db, [team]))[0]

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def list_teams(
        self, db: AsyncSession, user: User, include_inactive: bool = False
    ) -> List[Team]:
        stmt = select(Team)
        visible = await access_policy.visible_team_ids(db, user)
        if visible is not None:
            if not visible:
                return []
            stmt = stmt.where(Team.id.in_(visible))
        if not include_inactive:
            stmt = stmt.where(Team.is_active.is_(True))
        result = await db.execute(stmt.order_by(Team.name))
        return list(result.scalars().all())

    async def get_team_for(self, db: AsyncSession, user: User, team_id: int) -> Team:
        team = await self.get_team(db, team_id)
        await access_policy.ensure_team_access(db, user, team_id)
        return team

    async def _ensure_unique_name(
        self, db: AsyncSession, name: str, exclude_id: Optional[int] = None
    ) -> None:
        stmt = select(Team.id).where(func.lower(Team.name) == name.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(Team.id != exclude_id)
        if (await db.execute(stmt)).first() is not None:
            raise ConflictError(f"A team named '{name}' already exists", context={"field": "name"})

    async def create_team(self, db: AsyncSession, user: User, data: TeamCreate) -> Team:
        access_policy.require_roles(user, *STAFF_ROLES)
        await self._ensure_unique_name(db, data.name)

        team = Team(**data.model_dump())
        db.add(team)
        await db.flush()

        # A coach without a team takes charge of the team they create
        if user.role == Role.COACH.value and user.team_id is None:
            user.team_id = team.id
            await db.flush()
        logger.info("Team created: %s (id=%d) by %s", team.name, team.id, user.username)
        return team

    async def update_team(
        self, db: AsyncSession, user: User, team_id: int, data: TeamUpdate
    ) -> Team:
        team = await self.get_team(db, team_id)
        access_policy.ensure_team_staff(user, team_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("name"):
            await self._ensure_unique_name(db, changes["name"], exclude_id=team_id)
        if changes.get("max_players") is not None:
            current = await self.player_count(db, team_id)
            if changes["max_players"] < current:
                raise ValidationError(
                    f"max_players cannot be below the current roster size ({current})",
                    field="max_players",
                )
        for field, value in changes.items():
            if value is None and field in ("name", "max_players", "is_active"):
                continue
            setattr(team, field, value)
        await db.flush()
        return team

    async def delete_team(self, db: AsyncSession, user: User, team_id: int) -> None:
        access_policy.require_roles(user, Role.ADMIN.value)
        team = await self.get_team(db, team_id)
        count = await self.player_count(db, team_id)
        if count:
            raise ConflictError(
                f"Team still has {count} player(s); move them before deleting",
                context={"player_count": count},
            )
        await db.delete(team)
        await db.flush()
        logger.info("Team %d (%s) deleted by %s", team_id, team.name, user.username)

    # ── Roster ────────────────────────────────────────────────────────────

    async def list_players(self, db: AsyncSession, user: User, team_id: int) -> List[Player]:
        await self.get_team_for(db, user, team_id)
        result = await db.execute(
            select(Player).where(Player.team_id == team_id).order_by(Player.name)
        )
        return list(result.scalars().all())

    async def add_player(
        self, db: AsyncSession, user: User, team_id: int, player_id: int
    ) -> Player:
        team = await self.get_team(db, team_id)
        access_policy.ensure_team_staff(user, team_id)
        player = await db.get(Player, player_id)
        if player is None:
            raise NotFoundError(resource="Player", resource_id=player_id)

        if player.team_id == team_id:
            return player
        if player.team_id is not None and user.role != Role.ADMIN.value:
            raise ConflictError(
                "Player already belongs to another team",
                context={"current_team_id": player.team_id},
            )
        count = await self.player_count(db, team_id)
        if count >= team.max_players:
            raise ConflictError(
                f"Team is full ({team.max_players} players)",
                context={"max_players": team.max_players},
            )

        player.team_id = team_id
        await db.flush()
        logger.info("Player %d added to team %d by %s", player_id, team_id, user.username)
        return player

    async def remove_player(
        self, db: AsyncSession, user: User, team_id: int, player_id: int
    ) -> Player:
        await self.get_team(db, team_id)
        access_policy.ensure_team_staff(user, team_id)
        player = await db.get(Player, player_id)
        if player is None or player.team_id != team_id:
            raise NotFoundError(
                resource="Player in this team", resource_id=player_id
            )
        player.team_id = None
        await db.flush()
        logger.info("Player %d removed from team %d by %s", player_id, team_id, user.username)
        return player

    # ── Coaches ───────────────────────────────────────────────────────────

    async def assign_coach(
        self, db: AsyncSession, user: User, team_id: int, coach_id: int
    ) -> User:
        access_policy.require_roles(user, Role.ADMIN.value)
        await self.get_team(db, team_id)
        coach = await db.get(User, coach_id)
        if coach is None:
            raise NotFoundError(resource="User", resource_id=coach_id)
        if coach.role != Role.COACH.value or not coach.active:
            raise ValidationError("User is not an active coach", field="coach_id")

        previous = await self.get_coach(db, team_id)
        if previous is not None and previous.id != coach.id:
            previous.team_id = None
            logger.info("Coach %s detached from team %d", previous.username, team_id)
        coach.team_id = team_id
        await db.flush()
        logger.info("Coach %s assigned to team %d", coach.username, team_id)
        return coach

    async def remove_coach(self, db: AsyncSession, user: User, team_id: int) -> None:
        access_policy.require_roles(user, Role.ADMIN.value)
        await self.get_team(db, team_id)
        coach = await self.get_coach(db, team_id)
        if coach is None:
            raise NotFoundError(resource="Coach for team", resource_id=team_id)
        coach.team_id = None
        await db.flush()

    async def available_coaches(self, db: AsyncSession, user: User) -> List[User]:
        access_policy.require_roles(user, Role.ADMIN.value)
        result = await db.execute(
            select(User)
            .where(
                User.role == Role.COACH.value,
                User.active.is_(True),
                User.team_id.is_(None),
            )
            .order_by(User.username)
        )
        return list(result.scalars().all())


team_service = TeamService()
