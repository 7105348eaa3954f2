"""
Football Academy Backend — Training & Attendance Routes
=========================================================

Route Inventory:
    GET    /api/trainings                          list (scoped, filterable)
    GET    /api/trainings/upcoming                 next sessions
    GET    /api/trainings/team/{team_id}           sessions of one team
    GET    /api/trainings/players/{id}/summary     attendance summary
    POST   /api/trainings                          create (+ absent rows)
    GET    /api/trainings/{id}                     detail
    PUT    /api/trainings/{id}                     update
    DELETE /api/trainings/{id}                     delete
    GET    /api/trainings/{id}/attendance          attendance sheet
    POST   /api/trainings/{id}/attendance          bulk record
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES, MessageResponse
from academy.schemas.training import (
    AttendanceBulkRequest,
    AttendanceResponse,
    AttendanceSummary,
    TrainingCreate,
    TrainingResponse,
    TrainingUpdate,
)
from academy.services.training_service import MAX_UPCOMING, training_service

router = APIRouter(prefix="/api/trainings", tags=["Trainings"], responses=ERROR_RESPONSES)


@router.get("", response_model=List[TrainingResponse], summary="List trainings")
async def list_trainings(
    team_id: Optional[int] = Query(default=None),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    type: Optional[str] = Query(default=None, description="Training type"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TrainingResponse]:
    trainings = await training_service.list_trainings(
        db, user, team_id=team_id, date_from=date_from, date_to=date_to, training_type=type
    )
    return [TrainingResponse.model_validate(t) for t in trainings]


@router.get("/upcoming", response_model=List[TrainingResponse], summary="Upcoming trainings")
async def upcoming_trainings(
    limit: int = Query(default=5, ge=1, le=MAX_UPCOMING),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TrainingResponse]:
    trainings = await training_service.upcoming(db, user, limit=limit)
    return [TrainingResponse.model_validate(t) for t in trainings]


@router.get("/team/{team_id}", response_model=List[TrainingResponse], summary="Trainings of a team")
async def trainings_by_team(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TrainingResponse]:
    return [TrainingResponse.model_validate(t) for t in await training_service.by_team(db, user, team_id)]


@router.get(
    "/players/{player_id}/summary",
    response_model=AttendanceSummary,
    summary="Attendance summary for a player",
)
async def attendance_summary(
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AttendanceSummary:
    return await training_service.attendance_summary(db, user, player_id)


@router.post("", response_model=TrainingResponse, status_code=status.HTTP_201_CREATED, summary="Create a training")
async def create_training(
    body: TrainingCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TrainingResponse:
    return TrainingResponse.model_validate(await training_service.create_training(db, user, body))


@router.get("/{training_id}", response_model=TrainingResponse, summary="Training detail")
async def get_training(
    training_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TrainingResponse:
    return TrainingResponse.model_validate(
        await training_service.get_training_for(db, user, training_id)
    )


@router.put("/{training_id}", response_model=TrainingResponse, summary="Update a training")
async def update_training(
    training_id: int,
    body: TrainingUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TrainingResponse:
    return TrainingResponse.model_validate(
        await training_service.update_training(db, user, training_id, body)
    )


@router.delete("/{training_id}", response_model=MessageResponse, summary="Delete a training")
async def delete_training(
    training_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await training_service.delete_training(db, user, training_id)
    return MessageResponse(message="Training deleted")


@router.get("/{training_id}/attendance", response_model=List[AttendanceResponse], summary="Attendance sheet")
async def get_attendance(
    training_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[AttendanceResponse]:
    return await training_service.get_attendance(db, user, training_id)


@router.post(
    "/{training_id}/attendance",
    response_model=List[AttendanceResponse],
    summary="Record attendance in bulk",
)
async def record_attendance(
    training_id: int,
    body: AttendanceBulkRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[AttendanceResponse]:
    return await training_service.record_attendance(db, user, training_id, body)
