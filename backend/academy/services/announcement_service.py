"""
Football Academy Backend — Announcement Service
=================================================

What:  The academy notice board: academy-wide posts (team_id NULL) and
       team posts, urgent ones pinned to the top.
Who:   /api/announcements router, admin dashboard.

Coaches publish academy-wide or to their own team, and edit or delete
only what they wrote. Admins manage everything.
"""

import logging
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from academy.models.announcement import CATEGORIES, Announcement
from academy.models.team import Team
from academy.models.user import Role, User
from academy.schemas.announcement import AnnouncementCreate, AnnouncementUpdate
from academy.services.access import STAFF_ROLES, access_policy

logger = logging.getLogger(__name__)

MAX_FEED = 200


class AnnouncementService:

    def categories(self) -> List[str]:
        return list(CATEGORIES)

    async def _visible_stmt(self, db: AsyncSession, user: User):
        stmt = select(Announcement)
        visible = await access_policy.visible_team_ids(db, user)
        if visible is not None:
            if visible:
                stmt = stmt.where(
                    or_(Announcement.team_id.is_(None), Announcement.team_id.in_(visible))
                )
            else:
                stmt = stmt.where(Announcement.team_id.is_(None))
        return stmt

    async def list_announcements(
        self,
        db: AsyncSession,
        user: User,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        urgent_only: bool = False,
    ) -> List[Announcement]:
        stmt = await self._visible_stmt(db, user)
        if category:
            if category not in CATEGORIES:
                raise ValidationError(f"Unknown category '{category}'", field="category")
            stmt = stmt.where(Announcement.category == category)
        if urgent_only:
            stmt = stmt.where(Announcement.urgent.is_(True))
        stmt = stmt.order_by(
            Announcement.urgent.desc(), Announcement.created_at.desc(), Announcement.id.desc()
        )
        stmt = stmt.limit(max(1, min(limit or MAX_FEED, MAX_FEED)))
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_announcement(
        self, db: AsyncSession, user: User, announcement_id: int
    ) -> Announcement:
        stmt = await self._visible_stmt(db, user)
        result = await db.execute(stmt.where(Announcement.id == announcement_id))
        announcement = result.scalar_one_or_none()
        # Invisible and missing look the same
        if announcement is None:
            raise NotFoundError(resource="Announcement", resource_id=announcement_id)
        return announcement

    async def by_team(self, db: AsyncSession, user: User, team_id: int) -> List[Announcement]:
        if await db.get(Team, team_id) is None:
            raise NotFoundError(resource="Team", resource_id=team_id)
        await access_policy.ensure_team_access(db, user, team_id)
        result = await db.execute(
            select(Announcement)
            .where(Announcement.team_id == team_id)
            .order_by(Announcement.urgent.desc(), Announcement.created_at.desc())
        )
        return list(result.scalars().all())

    def _ensure_author(self, user: User, announcement: Announcement) -> None:
        access_policy.require_roles(user, *STAFF_ROLES)
        if user.role == Role.COACH.value and announcement.created_by != user.id:
            raise PermissionDeniedError("Coaches can only change their own announcements")

    async def create_announcement(
        self, db: AsyncSession, user: User, data: AnnouncementCreate
    ) -> Announcement:
        access_policy.require_roles(user, *STAFF_ROLES)
        if data.team_id is not None:
            if await db.get(Team, data.team_id) is None:
                raise ValidationError(f"Team {data.team_id} does not exist", field="team_id")
            access_policy.ensure_team_staff(user, data.team_id)

        announcement = Announcement(
            **data.model_dump(exclude={"urgent"}),
            urgent=data.urgent or data.category == "urgent",
            created_by=user.id,
        )
        db.add(announcement)
        await db.flush()
        logger.info(
            "Announcement %d '%s' posted to %s by %s",
            announcement.id, announcement.title,
            f"team {announcement.team_id}" if announcement.team_id else "academy",
            user.username,
        )
        return announcement

    async def update_announcement(
        self, db: AsyncSession, user: User, announcement_id: int, data: AnnouncementUpdate
    ) -> Announcement:
        announcement = await db.get(Announcement, announcement_id)
        if announcement is None:
            raise NotFoundError(resource="Announcement", resource_id=announcement_id)
        self._ensure_author(user, announcement)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(announcement, field, value)
        if announcement.category == "urgent":
            announcement.urgent = True
        await db.flush()
        return announcement

    async def delete_announcement(
        self, db: AsyncSession, user: User, announcement_id: int
    ) -> None:
        announcement = await db.get(Announcement, announcement_id)
        if announcement is None:
            raise NotFoundError(resource="Announcement", resource_id=announcement_id)
        self._ensure_author(user, announcement)
        await db.delete(announcement)
        await db.flush()
        logger.info("Announcement %d deleted by %s", announcement_id, user.username)


announcement_service = AnnouncementService()
