"""
Football Academy Backend — Development Plan Service
=====================================================

What:  Per-player season plans: goals, levels, progress and coach review.
Who:   /api/development-plans router, player detail page.

Staff of the player's current team write plans; parents and the player
read them. Reaching 100% completion closes the plan as "completed".
"""

import logging
from collections import Counter
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.exceptions import NotFoundError, ValidationError
from academy.models.development import DevelopmentPlan
from academy.models.player import Player
from academy.models.user import Role, User
from academy.schemas.development import (
    PlanCreate,
    PlanReview,
    PlanStatistics,
    PlanUpdate,
    ProgressUpdate,
)
from academy.services.access import STAFF_ROLES, access_policy
from academy.services.player_service import player_service

logger = logging.getLogger(__name__)

CLEARABLE_FIELDS = ("resources_needed", "deadline", "coach_notes", "parent_feedback")


class DevelopmentService:

    async def _get(self, db: AsyncSession, plan_id: int) -> DevelopmentPlan:
        plan = await db.get(DevelopmentPlan, plan_id)
        if plan is None:
            raise NotFoundError(resource="Development plan", resource_id=plan_id)
        return plan

    async def get_plan(self, db: AsyncSession, user: User, plan_id: int) -> DevelopmentPlan:
        plan = await self._get(db, plan_id)
        await player_service.get_player_for(db, user, plan.player_id)
        return plan

    async def _get_for_write(self, db: AsyncSession, user: User, plan_id: int) -> DevelopmentPlan:
        access_policy.require_roles(user, *STAFF_ROLES)
        plan = await self._get(db, plan_id)
        player = await player_service.get_player(db, plan.player_id)
        access_policy.ensure_team_staff(user, player.team_id)
        return plan

    async def list_plans(
        self,
        db: AsyncSession,
        user: User,
        status: Optional[str] = None,
        plan_type: Optional[str] = None,
        season: Optional[str] = None,
    ) -> List[DevelopmentPlan]:
        access_policy.require_roles(user, *STAFF_ROLES)
        stmt = select(DevelopmentPlan).join(Player, Player.id == DevelopmentPlan.player_id)
        if user.role == Role.COACH.value:
            if user.team_id is None:
                return []
            stmt = stmt.where(Player.team_id == user.team_id)
        if status:
            stmt = stmt.where(DevelopmentPlan.status == status)
        if plan_type:
            stmt = stmt.where(DevelopmentPlan.plan_type == plan_type)
        if season:
            stmt = stmt.where(DevelopmentPlan.season == season)
        result = await db.execute(
            stmt.order_by(DevelopmentPlan.created_at.desc(), DevelopmentPlan.id.desc())
        )
        return list(result.scalars().all())

    async def active_plans(self, db: AsyncSession, user: User) -> List[DevelopmentPlan]:
        return await self.list_plans(db, user, status="active")

    async def by_player(self, db: AsyncSession, user: User, player_id: int) -> List[DevelopmentPlan]:
        await player_service.get_player_for(db, user, player_id)
        result = await db.execute(
            select(DevelopmentPlan)
            .where(DevelopmentPlan.player_id == player_id)
            .order_by(DevelopmentPlan.season.desc(), DevelopmentPlan.id.desc())
        )
        return list(result.scalars().all())

    async def statistics(self, db: AsyncSession, user: User) -> PlanStatistics:
        plans = await self.list_plans(db, user)
        return PlanStatistics(
            total=len(plans),
            by_status=dict(Counter(p.status for p in plans)),
            by_type=dict(Counter(p.plan_type for p in plans)),
            average_completion=(
                round(sum(p.completion_percentage for p in plans) / len(plans), 1)
                if plans else None
            ),
        )

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_plan(self, db: AsyncSession, user: User, data: PlanCreate) -> DevelopmentPlan:
        access_policy.require_roles(user, *STAFF_ROLES)
        player = await player_service.get_player(db, data.player_id)
        access_policy.ensure_team_staff(user, player.team_id)
        if data.target_level < data.current_level:
            raise ValidationError(
                "target_level cannot be below current_level", field="target_level"
            )
        plan = DevelopmentPlan(**data.model_dump(), created_by=user.id)
        db.add(plan)
        await db.flush()
        logger.info(
            "Development plan %d (%s, %s) created for player %d by %s",
            plan.id, plan.plan_type, plan.season, player.id, user.username,
        )
        return plan

    async def update_plan(
        self, db: AsyncSession, user: User, plan_id: int, data: PlanUpdate
    ) -> DevelopmentPlan:
        plan = await self._get_for_write(db, user, plan_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field not in CLEARABLE_FIELDS:
                continue
            setattr(plan, field, value)
        if plan.target_level < plan.current_level:
            raise ValidationError(
                "target_level cannot be below current_level", field="target_level"
            )
        await db.flush()
        return plan

    async def update_progress(
        self, db: AsyncSession, user: User, plan_id: int, data: ProgressUpdate
    ) -> DevelopmentPlan:
        plan = await self._get_for_write(db, user, plan_id)
        if plan.status == "cancelled":
            raise ValidationError("Cancelled plans cannot be updated", field="status")
        plan.completion_percentage = data.completion_percentage
        if data.progress_notes is not None:
            plan.progress_notes = data.progress_notes
        if data.completion_percentage == 100:
            plan.status = "completed"
        elif plan.status == "completed":
            plan.status = "active"
        await db.flush()
        logger.info("Plan %d progress %d%%", plan.id, plan.completion_percentage)
        return plan

    async def review_plan(
        self,
        db: AsyncSession,
        user: User,
        plan_id: int,
        data: PlanReview,
        today: Optional[date] = None,
    ) -> DevelopmentPlan:
        plan = await self._get_for_write(db, user, plan_id)
        plan.reviewed_by = user.id
        plan.review_date = today or date.today()
        if data.coach_notes is not None:
            plan.coach_notes = data.coach_notes
        await db.flush()
        return plan

    async def delete_plan(self, db: AsyncSession, user: User, plan_id: int) -> None:
        access_policy.require_roles(user, Role.ADMIN.value)
        plan = await self._get(db, plan_id)
        await db.delete(plan)
        await db.flush()
        logger.info("Development plan %d deleted by %s", plan_id, user.username)


development_service = DevelopmentService()
