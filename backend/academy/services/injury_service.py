"""
Football Academy Backend — Injury Service
===========================================

What:  Injury log, recovery tracking, treatments and injury statistics.
Who:   /api/injuries router.

Who may do what:
    read    anyone who can see the player (staff of the player's team,
            linked parents, the player)
    write   admin, or the coach of the player's current team
    delete  admin only

Date rules:
    - injury_date and recovery dates cannot lie in the future
    - recovery_date >= injury_date
    - return_to_play_date >= recovery_date
"""

import logging
from collections import Counter
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.exceptions import NotFoundError, ValidationError
from academy.models.injury import Injury, InjuryTreatment
from academy.models.player import Player
from academy.models.user import Role, User
from academy.schemas.injury import (
    InjuryCreate,
    InjuryResponse,
    InjuryStatistics,
    InjuryUpdate,
    PlayerInjuryHistory,
    RecoveryUpdate,
    TreatmentCreate,
)
from academy.services.access import STAFF_ROLES, access_policy
from academy.services.player_service import player_service

logger = logging.getLogger(__name__)

# Columns an update may not clear
REQUIRED_FIELDS = ("injury_type", "injury_severity", "injury_location", "follow_up_required")


def _not_in_future(value: date, field: str, today: date) -> None:
    if value > today:
        raise ValidationError(f"{field} cannot be in the future", field=field)


def summarize(injuries: List[Injury]) -> InjuryStatistics:
    recovered = [i for i in injuries if i.actual_recovery_date is not None]
    durations = [(i.actual_recovery_date - i.injury_date).days for i in recovered]
    return InjuryStatistics(
        total=len(injuries),
        active=len(injuries) - len(recovered),
        recovered=len(recovered),
        by_type=dict(Counter(i.injury_type for i in injuries)),
        by_severity=dict(Counter(i.injury_severity for i in injuries)),
        average_recovery_days=round(sum(durations) / len(durations), 1) if durations else None,
    )


class InjuryService:

    async def _get(self, db: AsyncSession, injury_id: int) -> Tuple[Injury, Player]:
        injury = await db.get(Injury, injury_id)
        if injury is None:
            raise NotFoundError(resource="Injury", resource_id=injury_id)
        return injury, await player_service.get_player(db, injury.player_id)

    async def get_injury(self, db: AsyncSession, user: User, injury_id: int) -> Injury:
        injury, player = await self._get(db, injury_id)
        await access_policy.ensure_player_access(db, user, player)
        return injury

    async def _get_for_write(self, db: AsyncSession, user: User, injury_id: int) -> Injury:
        injury, player = await self._get(db, injury_id)
        access_policy.ensure_team_staff(user, player.team_id)
        return injury

    async def list_injuries(
        self,
        db: AsyncSession,
        user: User,
        player_id: Optional[int] = None,
        team_id: Optional[int] = None,
        status: Optional[str] = None,
        severity: Optional[str] = None,
    ) -> List[Injury]:
        """Staff view across players, newest injury first."""
        access_policy.require_roles(user, *STAFF_ROLES)
        stmt = select(Injury).join(Player, Player.id == Injury.player_id)
        if user.role == Role.COACH.value:
            if user.team_id is None:
                return []
            if team_id is not None:
                access_policy.ensure_team_staff(user, team_id)
            stmt = stmt.where(Player.team_id == user.team_id)
        elif team_id is not None:
            stmt = stmt.where(Player.team_id == team_id)
        if player_id is not None:
            stmt = stmt.where(Injury.player_id == player_id)
        if status == "active":
            stmt = stmt.where(Injury.actual_recovery_date.is_(None))
        elif status == "recovered":
            stmt = stmt.where(Injury.actual_recovery_date.is_not(None))
        elif status is not None:
            raise ValidationError(f"Unknown status '{status}'", field="status")
        if severity:
            stmt = stmt.where(Injury.injury_severity == severity)
        result = await db.execute(stmt.order_by(Injury.injury_date.desc(), Injury.id.desc()))
        return list(result.scalars().all())

    async def active_injuries(self, db: AsyncSession, user: User) -> List[Injury]:
        return await self.list_injuries(db, user, status="active")

    async def statistics(
        self, db: AsyncSession, user: User, team_id: Optional[int] = None
    ) -> InjuryStatistics:
        return summarize(await self.list_injuries(db, user, team_id=team_id))

    async def player_history(
        self, db: AsyncSession, user: User, player_id: int
    ) -> PlayerInjuryHistory:
        player = await player_service.get_player_for(db, user, player_id)
        result = await db.execute(
            select(Injury)
            .where(Injury.player_id == player_id)
            .order_by(Injury.injury_date.desc(), Injury.id.desc())
        )
        injuries = list(result.scalars().all())
        return PlayerInjuryHistory(
            player_id=player.id,
            player_name=player.name,
            injuries=[InjuryResponse.model_validate(i) for i in injuries],
            statistics=summarize(injuries),
        )

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_injury(
        self, db: AsyncSession, user: User, data: InjuryCreate, today: Optional[date] = None
    ) -> Injury:
        access_policy.require_roles(user, *STAFF_ROLES)
        player = await player_service.get_player(db, data.player_id)
        if user.role == Role.COACH.value:
            access_policy.ensure_team_staff(user, player.team_id)
        today = today or date.today()
        _not_in_future(data.injury_date, "injury_date", today)
        if data.expected_recovery_date and data.expected_recovery_date < data.injury_date:
            raise ValidationError(
                "expected_recovery_date cannot precede injury_date",
                field="expected_recovery_date",
            )

        injury = Injury(**data.model_dump(), created_by=user.id)
        db.add(injury)
        await db.flush()
        logger.info(
            "Injury %d recorded for player %d (%s, %s) by %s",
            injury.id, player.id, injury.injury_type, injury.injury_severity, user.username,
        )
        return injury

    async def update_injury(
        self, db: AsyncSession, user: User, injury_id: int, data: InjuryUpdate
    ) -> Injury:
        access_policy.require_roles(user, *STAFF_ROLES)
        injury = await self._get_for_write(db, user, injury_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in REQUIRED_FIELDS:
                continue
            setattr(injury, field, value)
        if injury.expected_recovery_date and injury.expected_recovery_date < injury.injury_date:
            raise ValidationError(
                "expected_recovery_date cannot precede injury_date",
                field="expected_recovery_date",
            )
        await db.flush()
        return injury

    async def record_recovery(
        self,
        db: AsyncSession,
        user: User,
        injury_id: int,
        data: RecoveryUpdate,
        today: Optional[date] = None,
    ) -> Injury:
        access_policy.require_roles(user, *STAFF_ROLES)
        injury = await self._get_for_write(db, user, injury_id)
        today = today or date.today()
        recovered_on = data.recovery_date or today
        _not_in_future(recovered_on, "recovery_date", today)
        if recovered_on < injury.injury_date:
            raise ValidationError("recovery_date cannot precede injury_date", field="recovery_date")
        if data.return_to_play_date is not None and data.return_to_play_date < recovered_on:
            raise ValidationError(
                "return_to_play_date cannot precede recovery_date", field="return_to_play_date"
            )

        injury.actual_recovery_date = recovered_on
        injury.return_to_play_date = data.return_to_play_date
        if data.recovery_notes is not None:
            injury.recovery_notes = data.recovery_notes
        await db.flush()
        logger.info("Injury %d marked recovered on %s by %s", injury.id, recovered_on, user.username)
        return injury

    async def delete_injury(self, db: AsyncSession, user: User, injury_id: int) -> None:
        access_policy.require_roles(user, Role.ADMIN.value)
        injury, _ = await self._get(db, injury_id)
        await db.delete(injury)
        await db.flush()
        logger.info("Injury %d deleted by %s", injury_id, user.username)

    # ── Treatments ────────────────────────────────────────────────────────

    async def add_treatment(
        self, db: AsyncSession, user: User, injury_id: int, data: TreatmentCreate
    ) -> InjuryTreatment:
        access_policy.require_roles(user, *STAFF_ROLES)
        injury = await self._get_for_write(db, user, injury_id)
        if data.treatment_date < injury.injury_date:
            raise ValidationError(
                "treatment_date cannot precede injury_date", field="treatment_date"
            )
        treatment = InjuryTreatment(injury_id=injury.id, recorded_by=user.id, **data.model_dump())
        db.add(treatment)
        await db.flush()
        return treatment

    async def treatments(
        self, db: AsyncSession, user: User, injury_id: int
    ) -> List[InjuryTreatment]:
        await self.get_injury(db, user, injury_id)
        result = await db.execute(
            select(InjuryTreatment)
            .where(InjuryTreatment.injury_id == injury_id)
            .order_by(InjuryTreatment.treatment_date, InjuryTreatment.id)
        )
        return list(result.scalars().all())


injury_service = InjuryService()
