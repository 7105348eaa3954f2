"""
Football Academy Backend — Announcement Routes
================================================
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
)
from academy.schemas.common import ERROR_RESPONSES, MessageResponse
from academy.services.announcement_service import MAX_FEED, announcement_service

router = APIRouter(prefix="/api/announcements", tags=["Announcements"], responses=ERROR_RESPONSES)


@router.get("", response_model=List[AnnouncementResponse], summary="Announcement feed")
async def list_announcements(
    category: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=MAX_FEED),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[AnnouncementResponse]:
    rows = await announcement_service.list_announcements(db, user, category=category, limit=limit)
    return [AnnouncementResponse.model_validate(a) for a in rows]


@router.get("/categories", response_model=List[str], summary="Announcement categories")
async def categories(_: User = Depends(get_current_user)) -> List[str]:
    return announcement_service.categories()


@router.get("/urgent", response_model=List[AnnouncementResponse], summary="Urgent announcements")
async def urgent_announcements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[AnnouncementResponse]:
    rows = await announcement_service.list_announcements(db, user, urgent_only=True)
    return [AnnouncementResponse.model_validate(a) for a in rows]


@router.get("/team/{team_id}", response_model=List[AnnouncementResponse], summary="Team announcements")
async def team_announcements(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[AnnouncementResponse]:
    rows = await announcement_service.by_team(db, user, team_id)
    return [AnnouncementResponse.model_validate(a) for a in rows]


@router.get("/{announcement_id}", response_model=AnnouncementResponse, summary="Announcement detail")
async def get_announcement(
    announcement_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnnouncementResponse:
    return AnnouncementResponse.model_validate(
        await announcement_service.get_announcement(db, user, announcement_id)
    )


@router.post(
    "",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish an announcement",
)
async def create_announcement(
    body: AnnouncementCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnnouncementResponse:
    return AnnouncementResponse.model_validate(
        await announcement_service.create_announcement(db, user, body)
    )


@router.put("/{announcement_id}", response_model=AnnouncementResponse, summary="Edit an announcement")
async def update_announcement(
    announcement_id: int,
    body: AnnouncementUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnnouncementResponse:
    return AnnouncementResponse.model_validate(
        await announcement_service.update_announcement(db, user, announcement_id, body)
    )


@router.delete("/{announcement_id}", response_model=MessageResponse, summary="Delete an announcement")
async def delete_announcement(
    announcement_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await announcement_service.delete_announcement(db, user, announcement_id)
    return MessageResponse(message="Announcement deleted")
