"""
Football Academy Backend — Dashboard Service
==============================================

What:  Builds the role-specific landing payload for GET /api/dashboard.
How:   Each section is loaded independently through _section(); a section
       that raises is logged and replaced by its empty value, so one
       broken query never turns the whole dashboard into a 500.

Fallback messages:
    coach without a team          → "No team assigned yet"
    parent without linked child   → "No child player assigned yet"
    player without linked record  → "No player profile linked yet"
"""

import logging
from datetime import date
from typing import Awaitable, Callable, List, TypeVar, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.models.match import Match
from academy.models.player import Player
from academy.models.team import Team
from academy.models.training import Training
from academy.models.user import Role, User
from academy.schemas.announcement import AnnouncementResponse
from academy.schemas.billing import InvoiceResponse
from academy.schemas.dashboard import (
    AdminCounts,
    AdminDashboard,
    ChildOverview,
    CoachDashboard,
    ParentDashboard,
    PlayerDashboard,
)
from academy.schemas.match import MatchResponse
from academy.schemas.player import PlayerResponse
from academy.schemas.training import TrainingResponse
from academy.schemas.user import UserResponse
from academy.services.access import access_policy
from academy.services.announcement_service import announcement_service
from academy.services.billing_service import billing_service
from academy.services.match_service import match_service
from academy.services.team_service import team_service
from academy.services.training_service import training_service

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_TEAM_MESSAGE = "No team assigned yet"
NO_CHILD_MESSAGE = "No child player assigned yet"
NO_PLAYER_MESSAGE = "No player profile linked yet"

UPCOMING_LIMIT = 5

Dashboard = Union[AdminDashboard, CoachDashboard, ParentDashboard, PlayerDashboard]


async def _section(name: str, user: User, load: Callable[[], Awaitable[T]], empty: T) -> T:
    try:
        return await load()
    except Exception:
        logger.exception("Dashboard section '%s' failed for %s", name, user.username)
        return empty


class DashboardService:

    async def build(self, db: AsyncSession, user: User) -> Dashboard:
        builders = {
            Role.ADMIN.value: self.admin,
            Role.COACH.value: self.coach,
            Role.PARENT.value: self.parent,
            Role.PLAYER.value: self.player,
        }
        return await builders[user.role](db, user)

    # ── Admin ─────────────────────────────────────────────────────────────

    async def _admin_counts(self, db: AsyncSession) -> AdminCounts:
        today = date.today()
        by_role = dict(
            (
                await db.execute(
                    select(User.role, func.count(User.id))
                    .where(User.active.is_(True))
                    .group_by(User.role)
                )
            ).all()
        )
        teams = (
            await db.execute(select(func.count(Team.id)).where(Team.is_active.is_(True)))
        ).scalar_one()
        players = (await db.execute(select(func.count(Player.id)))).scalar_one()
        trainings = (
            await db.execute(select(func.count(Training.id)).where(Training.date >= today))
        ).scalar_one()
        matches = (
            await db.execute(
                select(func.count(Match.id)).where(
                    Match.match_date >= today, Match.match_status == "scheduled"
                )
            )
        ).scalar_one()
        return AdminCounts(
            users_by_role=by_role,
            teams=teams,
            players=players,
            upcoming_trainings=trainings,
            upcoming_matches=matches,
        )

    async def admin(self, db: AsyncSession, user: User) -> AdminDashboard:
        async def announcements() -> List[AnnouncementResponse]:
            rows = await announcement_service.list_announcements(db, user, limit=5)
            return [AnnouncementResponse.model_validate(a) for a in rows]

        return AdminDashboard(
            user=UserResponse.model_validate(user),
            counts=await _section("counts", user, lambda: self._admin_counts(db), AdminCounts()),
            financial=await _section(
                "financial", user, lambda: billing_service.financial_summary(db), None
            ),
            recent_announcements=await _section("announcements", user, announcements, []),
        )

    # ── Coach ─────────────────────────────────────────────────────────────

    async def coach(self, db: AsyncSession, user: User) -> CoachDashboard:
        profile = UserResponse.model_validate(user)
        team = await db.get(Team, user.team_id) if user.team_id is not None else None
        if team is None:
            return CoachDashboard(user=profile, message=NO_TEAM_MESSAGE)

        async def players() -> List[PlayerResponse]:
            rows = await team_service.list_players(db, user, team.id)
            return [PlayerResponse.model_validate(p) for p in rows]

        async def trainings() -> List[TrainingResponse]:
            rows = await training_service.upcoming(db, user, limit=UPCOMING_LIMIT)
            return [TrainingResponse.model_validate(t) for t in rows]

        async def matches() -> List[MatchResponse]:
            rows = await match_service.recent_for_team(db, team.id)
            return [MatchResponse.model_validate(m) for m in rows]

        return CoachDashboard(
            user=profile,
            team=await _section("team", user, lambda: team_service.to_response(db, team), None),
            players=await _section("players", user, players, []),
            upcoming_trainings=await _section("upcoming_trainings", user, trainings, []),
            recent_matches=await _section("recent_matches", user, matches, []),
            performance=await _section(
                "performance", user, lambda: match_service.team_performance(db, user, team.id), None
            ),
        )

    # ── Parent ────────────────────────────────────────────────────────────

    async def _child_overview(self, db: AsyncSession, user: User, child: Player) -> ChildOverview:
        overview = ChildOverview(player=PlayerResponse.model_validate(child))
        if child.team_id is not None:
            team = await db.get(Team, child.team_id)
            if team is not None:
                overview.team = await _section(
                    "child_team", user, lambda: team_service.to_response(db, team), None
                )

            async def trainings() -> List[TrainingResponse]:
                rows = await training_service.upcoming(
                    db, user, limit=UPCOMING_LIMIT, team_ids=[child.team_id]
                )
                return [TrainingResponse.model_validate(t) for t in rows]

            overview.upcoming_trainings = await _section("child_trainings", user, trainings, [])

        overview.attendance = await _section(
            "child_attendance",
            user,
            lambda: training_service.attendance_summary(db, user, child.id),
            None,
        )

        async def invoices() -> List[InvoiceResponse]:
            rows = await billing_service.outstanding_for_player(db, child.id)
            return [InvoiceResponse.model_validate(i) for i in rows]

        overview.outstanding_invoices = await _section("child_invoices", user, invoices, [])
        return overview

    async def parent(self, db: AsyncSession, user: User) -> ParentDashboard:
        profile = UserResponse.model_validate(user)
        child_ids = await access_policy.child_ids(db, user.id)
        if not child_ids:
            return ParentDashboard(user=profile, message=NO_CHILD_MESSAGE)

        result = await db.execute(
            select(Player).where(Player.id.in_(child_ids)).order_by(Player.name)
        )
        children = [
            await self._child_overview(db, user, child) for child in result.scalars().all()
        ]
        return ParentDashboard(user=profile, children=children)

    # ── Player ────────────────────────────────────────────────────────────

    async def player(self, db: AsyncSession, user: User) -> PlayerDashboard:
        profile = UserResponse.model_validate(user)
        record = await db.get(Player, user.player_id) if user.player_id is not None else None
        if record is None:
            return PlayerDashboard(user=profile, message=NO_PLAYER_MESSAGE)

        dashboard = PlayerDashboard(user=profile, player=PlayerResponse.model_validate(record))
        if record.team_id is not None:
            team = await db.get(Team, record.team_id)
            if team is not None:
                dashboard.team = await _section(
                    "team", user, lambda: team_service.to_response(db, team), None
                )

            async def trainings() -> List[TrainingResponse]:
                rows = await training_service.upcoming(
                    db, user, limit=UPCOMING_LIMIT, team_ids=[record.team_id]
                )
                return [TrainingResponse.model_validate(t) for t in rows]

            dashboard.upcoming_trainings = await _section("upcoming_trainings", user, trainings, [])
        dashboard.attendance = await _section(
            "attendance",
            user,
            lambda: training_service.attendance_summary(db, user, record.id),
            None,
        )
        return dashboard


dashboard_service = DashboardService()
