"""
Football Academy Backend — Training & Attendance Service
==========================================================

What:  Training CRUD, upcoming sessions, bulk attendance and per-player
       attendance summaries.
How:   Creating a training pre-fills one absent row per team player, so
       the attendance sheet is complete before the coach touches it.
       Bulk recording upserts on (training_id, player_id).
Who:   /api/trainings router, check-in service, dashboard, notifications.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_, case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.exceptions import NotFoundError, ValidationError
from academy.models.player import Player
from academy.models.team import Team
from academy.models.training import Attendance, Training, TrainingQRToken
from academy.models.user import Role, User
from academy.schemas.training import (
    AttendanceBulkRequest,
    AttendanceResponse,
    AttendanceSummary,
    TrainingCreate,
    TrainingUpdate,
)
from academy.services.access import access_policy

logger = logging.getLogger(__name__)

MAX_UPCOMING = 50


def attendance_response(row: Attendance, player_name: Optional[str] = None) -> AttendanceResponse:
    return AttendanceResponse(
        id=row.id,
        training_id=row.training_id,
        player_id=row.player_id,
        player_name=player_name,
        present=row.present,
        late_minutes=row.late_minutes,
        absence_reason=row.absence_reason,
        performance_rating=row.performance_rating,
        notes=row.notes,
        checked_in_at=row.checked_in_at,
    )


class TrainingService:

    async def get_training(self, db: AsyncSession, training_id: int) -> Training:
        training = await db.get(Training, training_id)
        if training is None:
            raise NotFoundError(resource="Training", resource_id=training_id)
        return training

    async def get_training_for(self, db: AsyncSession, user: User, training_id: int) -> Training:
        training = await self.get_training(db, training_id)
        await access_policy.ensure_team_access(db, user, training.team_id)
        return training

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_trainings(
        self,
        db: AsyncSession,
        user: User,
        team_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        training_type: Optional[str] = None,
    ) -> List[Training]:
        stmt = select(Training)
        visible = await access_policy.visible_team_ids(db, user)
        if visible is not None:
            if not visible:
                return []
            stmt = stmt.where(Training.team_id.in_(visible))
        if team_id is not None:
            stmt = stmt.where(Training.team_id == team_id)
        if date_from is not None:
            stmt = stmt.where(Training.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Training.date <= date_to)
        if training_type:
            stmt = stmt.where(Training.type == training_type)
        result = await db.execute(stmt.order_by(Training.date.desc(), Training.time.desc()))
        return list(result.scalars().all())

    async def upcoming(
        self,
        db: AsyncSession,
        user: User,
        limit: int = 5,
        today: Optional[date] = None,
        until: Optional[date] = None,
        team_ids: Optional[Iterable[int]] = None,
    ) -> List[Training]:
        """
        Trainings from today on, soonest first.

        team_ids narrows the result further inside the user's visible teams
        (the parent dashboard asks per child).
        """
        today = today or date.today()
        limit = max(1, min(limit, MAX_UPCOMING))
        stmt = select(Training).where(Training.date >= today)
        visible = await access_policy.visible_team_ids(db, user)
        if visible is not None:
            if not visible:
                return []
            stmt = stmt.where(Training.team_id.in_(visible))
        if team_ids is not None:
            stmt = stmt.where(Training.team_id.in_(list(team_ids)))
        if until is not None:
            stmt = stmt.where(Training.date <= until)
        result = await db.execute(
            stmt.order_by(Training.date, Training.time).limit(limit)
        )
        return list(result.scalars().all())

    async def by_team(self, db: AsyncSession, user: User, team_id: int) -> List[Training]:
        if await db.get(Team, team_id) is None:
            raise NotFoundError(resource="Team", resource_id=team_id)
        await access_policy.ensure_team_access(db, user, team_id)
        result = await db.execute(
            select(Training)
            .where(Training.team_id == team_id)
            .order_by(Training.date.desc(), Training.time.desc())
        )
        return list(result.scalars().all())

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_training(self, db: AsyncSession, user: User, data: TrainingCreate) -> Training:
        access_policy.ensure_team_staff(user, data.team_id)
        if await db.get(Team, data.team_id) is None:
            raise ValidationError(f"Team {data.team_id} does not exist", field="team_id")

        training = Training(**data.model_dump(), created_by=user.id)
        db.add(training)
        await db.flush()

        roster = await db.execute(select(Player.id).where(Player.team_id == data.team_id))
        player_ids = list(roster.scalars().all())
        db.add_all(
            Attendance(
                training_id=training.id,
                player_id=player_id,
                present=False,
                recorded_by=user.id,
            )
            for player_id in player_ids
        )
        await db.flush()
        logger.info(
            "Training %d created for team %d on %s (%d attendance rows)",
            training.id, training.team_id, training.date, len(player_ids),
        )
        return training

    async def update_training(
        self, db: AsyncSession, user: User, training_id: int, data: TrainingUpdate
    ) -> Training:
        training = await self.get_training(db, training_id)
        access_policy.ensure_team_staff(user, training.team_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("date", "time", "duration", "type"):
                continue
            setattr(training, field, value)
        await db.flush()
        return training

    async def delete_training(self, db: AsyncSession, user: User, training_id: int) -> None:
        training = await self.get_training(db, training_id)
        access_policy.ensure_team_staff(user, training.team_id)
        await db.execute(delete(Attendance).where(Attendance.training_id == training_id))
        await db.execute(delete(TrainingQRToken).where(TrainingQRToken.training_id == training_id))
        await db.delete(training)
        await db.flush()
        logger.info("Training %d deleted by %s", training_id, user.username)

    # ── Attendance ────────────────────────────────────────────────────────

    async def attendance_rows(
        self,
        db: AsyncSession,
        training_id: int,
        player_ids: Optional[Iterable[int]] = None,
        checked_in_only: bool = False,
    ) -> List[AttendanceResponse]:
        stmt = (
            select(Attendance, Player.name)
            .join(Player, Player.id == Attendance.player_id)
            .where(Attendance.training_id == training_id)
        )
        if player_ids is not None:
            stmt = stmt.where(Attendance.player_id.in_(list(player_ids)))
        if checked_in_only:
            stmt = stmt.where(Attendance.checked_in_at.is_not(None)).order_by(
                Attendance.checked_in_at
            )
        else:
            stmt = stmt.order_by(Player.name)
        result = await db.execute(stmt)
        return [attendance_response(row, name) for row, name in result.all()]

    async def record_attendance(
        self, db: AsyncSession, user: User, training_id: int, data: AttendanceBulkRequest
    ) -> List[AttendanceResponse]:
        training = await self.get_training(db, training_id)
        access_policy.ensure_team_staff(user, training.team_id)

        requested = [item.player_id for item in data.attendance]
        roster = await db.execute(
            select(Player.id).where(
                Player.id.in_(requested), Player.team_id == training.team_id
            )
        )
        on_team = set(roster.scalars().all())
        strangers = sorted(set(requested) - on_team)
        if strangers:
            raise ValidationError(
                "Players are not in this training's team",
                field="player_id",
                context={"player_ids": strangers},
            )

        existing_rows = await db.execute(
            select(Attendance).where(
                Attendance.training_id == training_id,
                Attendance.player_id.in_(requested),
            )
        )
        existing: Dict[int, Attendance] = {
            row.player_id: row for row in existing_rows.scalars().all()
        }
        for item in data.attendance:
            row = existing.get(item.player_id)
            if row is None:
                row = Attendance(training_id=training_id, player_id=item.player_id)
                db.add(row)
                existing[item.player_id] = row
            row.present = item.present
            row.late_minutes = item.late_minutes if item.present else 0
            row.absence_reason = None if item.present else item.absence_reason
            row.performance_rating = item.performance_rating
            row.notes = item.notes
            row.recorded_by = user.id
        await db.flush()
        logger.info(
            "Attendance recorded for training %d: %d rows by %s",
            training_id, len(data.attendance), user.username,
        )
        return await self.attendance_rows(db, training_id)

    async def get_attendance(
        self, db: AsyncSession, user: User, training_id: int
    ) -> List[AttendanceResponse]:
        training = await self.get_training_for(db, user, training_id)
        player_ids = None
        if user.role in (Role.PARENT.value, Role.PLAYER.value):
            player_ids = await access_policy.visible_player_ids(db, user)
        return await self.attendance_rows(db, training.id, player_ids=player_ids)

    async def attendance_summary(
        self,
        db: AsyncSession,
        user: User,
        player_id: int,
        today: Optional[date] = None,
    ) -> AttendanceSummary:
        """
        Sessions held up to today. Future sessions already carry a
        pre-filled absent row and are left out of the rate.
        """
        player = await db.get(Player, player_id)
        if player is None:
            raise NotFoundError(resource="Player", resource_id=player_id)
        await access_policy.ensure_player_access(db, user, player)

        today = today or date.today()
        result = await db.execute(
            select(
                func.count(Attendance.id),
                func.coalesce(func.sum(case((Attendance.present.is_(True), 1), else_=0)), 0),
                func.coalesce(
                    func.sum(
                        case(
                            (and_(Attendance.present.is_(True), Attendance.late_minutes > 0), 1),
                            else_=0,
                        )
                    ),
                    0,
                ),
            )
            .join(Training, Training.id == Attendance.training_id)
            .where(Attendance.player_id == player_id, Training.date <= today)
        )
        total, attended, late = result.one()
        rate = round(attended * 100.0 / total, 1) if total else 0.0
        return AttendanceSummary(
            player_id=player_id,
            total_sessions=total,
            attended=attended,
            late=late,
            attendance_rate=rate,
        )


training_service = TrainingService()
