"""
Football Academy Backend — Notification Service
=================================================

What:  Upcoming-training reminders for GET /api/notifications/upcoming.
How:   Looks ahead a role-dependent number of days from today over the
       trainings the user can see. Nothing is sent; the frontend polls.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.models.team import Team
from academy.models.user import Role, User
from academy.schemas.dashboard import TrainingReminder
from academy.services.training_service import MAX_UPCOMING, training_service

logger = logging.getLogger(__name__)

# Days ahead, including today
LOOKAHEAD_DAYS: Dict[str, int] = {
    Role.ADMIN.value: 1,
    Role.COACH.value: 1,
    Role.PARENT.value: 2,
    Role.PLAYER.value: 1,
}


class NotificationService:

    async def upcoming(
        self, db: AsyncSession, user: User, today: Optional[date] = None
    ) -> List[TrainingReminder]:
        today = today or date.today()
        until = today + timedelta(days=LOOKAHEAD_DAYS.get(user.role, 1))
        trainings = await training_service.upcoming(
            db, user, limit=MAX_UPCOMING, today=today, until=until
        )
        if not trainings:
            return []

        team_ids = {t.team_id for t in trainings}
        names = dict(
            (await db.execute(select(Team.id, Team.name).where(Team.id.in_(team_ids)))).all()
        )
        reminders = []
        for training in trainings:
            when = "today" if training.date == today else training.date.strftime("%Y-%m-%d")
            message = f"{names.get(training.team_id, 'Team')} training {when} at {training.time:%H:%M}"
            if training.location:
                message += f" ({training.location})"
            reminders.append(
                TrainingReminder(
                    training_id=training.id,
                    team_id=training.team_id,
                    date=training.date,
                    time=training.time,
                    location=training.location,
                    message=message,
                )
            )
        logger.debug("%d training reminder(s) for %s", len(reminders), user.username)
        return reminders


notification_service = NotificationService()
