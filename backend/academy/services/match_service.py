"""
Football Academy Backend — Match Service
==========================================

What:  Fixtures, scores, in-match events and the derived statistics
       (top scorers, team table, form guides).
How:   A match involves home_team_id and optionally away_team_id (another
       academy team); outside clubs appear as opponent_name only. Every
       statistic is computed from completed matches with a score.

Points: win 3, draw 1, loss 0.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from academy.models.match import Match, MatchEvent
from academy.models.player import Player
from academy.models.team import Team
from academy.models.user import Role, User
from academy.schemas.match import (
    MatchCreate,
    MatchEventCreate,
    MatchUpdate,
    PlayerForm,
    PlayerFormEntry,
    ScoreUpdate,
    TeamForm,
    TeamPerformance,
    TopScorer,
)
from academy.services.access import STAFF_ROLES, access_policy

logger = logging.getLogger(__name__)

COMPLETED = "completed"
MAX_STAT_ROWS = 100


def _scored(team_id: int):
    """Completed matches with a score that involve team_id."""
    return and_(
        Match.match_status == COMPLETED,
        Match.home_score.is_not(None),
        Match.away_score.is_not(None),
        or_(Match.home_team_id == team_id, Match.away_team_id == team_id),
    )


def _goals_for_against(match: Match, team_id: int):
    if match.home_team_id == team_id:
        return match.home_score, match.away_score
    return match.away_score, match.home_score


def _result_letter(goals_for: int, goals_against: int) -> str:
    if goals_for > goals_against:
        return "W"
    if goals_for == goals_against:
        return "D"
    return "L"


class MatchService:

    async def get_match(self, db: AsyncSession, match_id: int) -> Match:
        match = await db.get(Match, match_id)
        if match is None:
            raise NotFoundError(resource="Match", resource_id=match_id)
        return match

    async def get_match_for(self, db: AsyncSession, user: User, match_id: int) -> Match:
        match = await self.get_match(db, match_id)
        visible = await access_policy.visible_team_ids(db, user)
        if visible is not None and not (match.team_ids() & visible):
            raise PermissionDeniedError(
                "You do not have access to this match", context={"match_id": match_id}
            )
        return match

    def _ensure_match_staff(self, user: User, match: Match) -> None:
        access_policy.require_roles(user, *STAFF_ROLES)
        if user.role == Role.COACH.value and user.team_id not in match.team_ids():
            raise PermissionDeniedError(
                "Coaches can only manage their own team's matches",
                context={"match_id": match.id},
            )

    # ── Fixtures ──────────────────────────────────────────────────────────

    async def list_matches(
        self,
        db: AsyncSession,
        user: User,
        season: Optional[str] = None,
        match_type: Optional[str] = None,
        status: Optional[str] = None,
        team_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Match]:
        stmt = select(Match)
        visible = await access_policy.visible_team_ids(db, user)
        if visible is not None:
            if not visible:
                return []
            stmt = stmt.where(
                or_(Match.home_team_id.in_(visible), Match.away_team_id.in_(visible))
            )
        if season:
            stmt = stmt.where(Match.season == season)
        if match_type:
            stmt = stmt.where(Match.match_type == match_type)
        if status:
            stmt = stmt.where(Match.match_status == status)
        if team_id is not None:
            stmt = stmt.where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
        if date_from is not None:
            stmt = stmt.where(Match.match_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Match.match_date <= date_to)
        result = await db.execute(stmt.order_by(Match.match_date.desc(), Match.id.desc()))
        return list(result.scalars().all())

    async def create_match(self, db: AsyncSession, user: User, data: MatchCreate) -> Match:
        access_policy.require_roles(user, *STAFF_ROLES)
        for team_id in filter(None, (data.home_team_id, data.away_team_id)):
            if await db.get(Team, team_id) is None:
                raise ValidationError(f"Team {team_id} does not exist", field="team_id")

        match = Match(**data.model_dump(), created_by=user.id)
        self._ensure_match_staff(user, match)
        db.add(match)
        await db.flush()
        logger.info("Match %d created (%r) by %s", match.id, match, user.username)
        return match

    async def update_match(
        self, db: AsyncSession, user: User, match_id: int, data: MatchUpdate
    ) -> Match:
        match = await self.get_match(db, match_id)
        self._ensure_match_staff(user, match)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("match_date", "match_type", "match_duration", "match_status"):
                continue
            setattr(match, field, value)
        await db.flush()
        return match

    async def delete_match(self, db: AsyncSession, user: User, match_id: int) -> None:
        access_policy.require_roles(user, Role.ADMIN.value)
        match = await self.get_match(db, match_id)
        await db.delete(match)
        await db.flush()
        logger.info("Match %d deleted by %s", match_id, user.username)

    async def update_score(
        self, db: AsyncSession, user: User, match_id: int, data: ScoreUpdate
    ) -> Match:
        match = await self.get_match(db, match_id)
        self._ensure_match_staff(user, match)
        if data.home_score < 0 or data.away_score < 0:
            raise ValidationError("Scores cannot be negative", field="home_score")
        match.home_score = data.home_score
        match.away_score = data.away_score
        match.match_status = data.match_status or COMPLETED
        await db.flush()
        logger.info(
            "Match %d score %d-%d (%s)", match.id, match.home_score, match.away_score,
            match.match_status,
        )
        return match

    # ── Events ────────────────────────────────────────────────────────────

    async def list_events(self, db: AsyncSession, user: User, match_id: int) -> List[MatchEvent]:
        await self.get_match_for(db, user, match_id)
        result = await db.execute(
            select(MatchEvent)
            .where(MatchEvent.match_id == match_id)
            .order_by(MatchEvent.minute.is_(None), MatchEvent.minute, MatchEvent.id)
        )
        return list(result.scalars().all())

    async def add_event(
        self, db: AsyncSession, user: User, match_id: int, data: MatchEventCreate
    ) -> MatchEvent:
        match = await self.get_match(db, match_id)
        self._ensure_match_staff(user, match)
        if data.team_id not in match.team_ids():
            raise ValidationError("Team did not play in this match", field="team_id")

        player = await db.get(Player, data.player_id)
        if player is None or player.team_id != data.team_id:
            raise ValidationError("Player is not in the given team", field="player_id")
        if data.assisted_by is not None:
            assistant = await db.get(Player, data.assisted_by)
            if assistant is None or assistant.id == player.id:
                raise ValidationError("Invalid assisting player", field="assisted_by")

        event = MatchEvent(match_id=match_id, **data.model_dump())
        db.add(event)
        await db.flush()
        return event

    # ── Statistics ────────────────────────────────────────────────────────

    async def top_scorers(
        self,
        db: AsyncSession,
        user: User,
        season: Optional[str] = None,
        limit: int = 10,
    ) -> List[TopScorer]:
        goals = func.count(MatchEvent.id).label("goals")
        stmt = (
            select(Player.id, Player.name, Player.team_id, goals)
            .join(MatchEvent, MatchEvent.player_id == Player.id)
            .join(Match, Match.id == MatchEvent.match_id)
            .where(MatchEvent.event_type == "goal")
        )
        visible = await access_policy.visible_team_ids(db, user)
        if visible is not None:
            if not visible:
                return []
            stmt = stmt.where(MatchEvent.team_id.in_(visible))
        if season:
            stmt = stmt.where(Match.season == season)
        stmt = (
            stmt.group_by(Player.id, Player.name, Player.team_id)
            .order_by(goals.desc(), Player.name)
            .limit(max(1, min(limit, MAX_STAT_ROWS)))
        )
        result = await db.execute(stmt)
        return [
            TopScorer(player_id=pid, player_name=name, team_id=team_id, goals=count)
            for pid, name, team_id, count in result.all()
        ]

    async def team_performance(
        self, db: AsyncSession, user: User, team_id: int, season: Optional[str] = None
    ) -> TeamPerformance:
        team = await db.get(Team, team_id)
        if team is None:
            raise NotFoundError(resource="Team", resource_id=team_id)
        await access_policy.ensure_team_access(db, user, team_id)

        stmt = select(Match).where(_scored(team_id))
        if season:
            stmt = stmt.where(Match.season == season)
        matches = (await db.execute(stmt)).scalars().all()

        perf = TeamPerformance(team_id=team.id, team_name=team.name)
        for match in matches:
            scored, conceded = _goals_for_against(match, team_id)
            perf.played += 1
            perf.goals_for += scored
            perf.goals_against += conceded
            letter = _result_letter(scored, conceded)
            if letter == "W":
                perf.wins += 1
            elif letter == "D":
                perf.draws += 1
            else:
                perf.losses += 1
        perf.goal_difference = perf.goals_for - perf.goals_against
        perf.points = perf.wins * 3 + perf.draws
        return perf

    async def team_form(
        self, db: AsyncSession, user: User, team_id: int, last: int = 5
    ) -> TeamForm:
        if await db.get(Team, team_id) is None:
            raise NotFoundError(resource="Team", resource_id=team_id)
        await access_policy.ensure_team_access(db, user, team_id)

        result = await db.execute(
            select(Match)
            .where(_scored(team_id))
            .order_by(Match.match_date.desc(), Match.id.desc())
            .limit(max(1, min(last, MAX_STAT_ROWS)))
        )
        form = [
            _result_letter(*_goals_for_against(match, team_id))
            for match in result.scalars().all()
        ]
        return TeamForm(team_id=team_id, form=form)

    async def player_form(
        self, db: AsyncSession, user: User, player_id: int, last: int = 5
    ) -> PlayerForm:
        """
        The player's last N completed matches with goals and assists.

        Assists count explicit 'assist' events plus goals credited to the
        player through assisted_by.
        """
        player = await db.get(Player, player_id)
        if player is None:
            raise NotFoundError(resource="Player", resource_id=player_id)
        await access_policy.ensure_player_access(db, user, player)

        involved = select(MatchEvent.match_id).where(
            or_(MatchEvent.player_id == player_id, MatchEvent.assisted_by == player_id)
        )
        conditions = [Match.id.in_(involved)]
        if player.team_id is not None:
            conditions.append(
                or_(Match.home_team_id == player.team_id, Match.away_team_id == player.team_id)
            )
        result = await db.execute(
            select(Match)
            .where(Match.match_status == COMPLETED, or_(*conditions))
            .order_by(Match.match_date.desc(), Match.id.desc())
            .limit(max(1, min(last, MAX_STAT_ROWS)))
        )
        matches = list(result.scalars().all())
        if not matches:
            return PlayerForm(player_id=player_id, matches=[])

        events = await db.execute(
            select(MatchEvent).where(MatchEvent.match_id.in_([m.id for m in matches]))
        )
        goals: Dict[int, int] = {}
        assists: Dict[int, int] = {}
        for event in events.scalars().all():
            if event.player_id == player_id and event.event_type == "goal":
                goals[event.match_id] = goals.get(event.match_id, 0) + 1
            if (event.player_id == player_id and event.event_type == "assist") or (
                event.event_type == "goal" and event.assisted_by == player_id
            ):
                assists[event.match_id] = assists.get(event.match_id, 0) + 1

        return PlayerForm(
            player_id=player_id,
            matches=[
                PlayerFormEntry(
                    match_id=m.id,
                    match_date=m.match_date,
                    goals=goals.get(m.id, 0),
                    assists=assists.get(m.id, 0),
                )
                for m in matches
            ],
        )

    async def results(
        self,
        db: AsyncSession,
        user: User,
        season: Optional[str] = None,
        team_id: Optional[int] = None,
        limit: int = 20,
    ) -> List[Match]:
        matches = await self.list_matches(db, user, season=season, status=COMPLETED, team_id=team_id)
        return matches[: max(1, min(limit, MAX_STAT_ROWS))]

    async def recent_for_team(self, db: AsyncSession, team_id: int, limit: int = 5) -> List[Match]:
        result = await db.execute(
            select(Match)
            .where(
                or_(Match.home_team_id == team_id, Match.away_team_id == team_id),
                Match.match_date <= date.today(),
            )
            .order_by(Match.match_date.desc(), Match.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


match_service = MatchService()
