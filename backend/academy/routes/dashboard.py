"""
Football Academy Backend — Dashboard & Notification Routes
============================================================

What:  GET /api/dashboard (role-specific landing data) and
       GET /api/notifications/upcoming (training reminders).
"""

from typing import List, Union

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES
from academy.schemas.dashboard import (
    AdminDashboard,
    CoachDashboard,
    ParentDashboard,
    PlayerDashboard,
    TrainingReminder,
)
from academy.services.dashboard_service import dashboard_service
from academy.services.notification_service import notification_service

router = APIRouter(prefix="/api", tags=["Dashboard"], responses=ERROR_RESPONSES)


@router.get(
    "/dashboard",
    response_model=Union[AdminDashboard, CoachDashboard, ParentDashboard, PlayerDashboard],
    summary="Role-specific dashboard",
    description=(
        "Admin: academy counts, finances, recent announcements. Coach: own team, "
        "roster, upcoming trainings, recent matches, performance. Parent: one "
        "overview per linked child. Player: own record, team, trainings, attendance."
    ),
)
async def get_dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await dashboard_service.build(db, user)


@router.get(
    "/notifications/upcoming",
    response_model=List[TrainingReminder],
    tags=["Notifications"],
    summary="Trainings coming up within the role's look-ahead window",
)
async def upcoming_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TrainingReminder]:
    return await notification_service.upcoming(db, user)
