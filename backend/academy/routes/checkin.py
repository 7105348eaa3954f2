"""
Football Academy Backend — QR Check-in Routes
===============================================
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES, ErrorResponse
from academy.schemas.training import (
    AttendanceResponse,
    CheckInRequest,
    CheckInResponse,
    QRCodeResponse,
)
from academy.services.checkin_service import checkin_service

router = APIRouter(prefix="/api/checkin", tags=["Check-in"], responses=ERROR_RESPONSES)


@router.post(
    "/trainings/{training_id}/qr",
    response_model=QRCodeResponse,
    summary="Issue a check-in QR code for a training",
)
async def generate_qr(
    training_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> QRCodeResponse:
    return await checkin_service.generate_qr(db, user, training_id)


@router.post(
    "",
    response_model=CheckInResponse,
    responses={
        400: {"description": "Invalid QR code, closed window or wrong team", "model": ErrorResponse},
        409: {"description": "Player already checked in", "model": ErrorResponse},
    },
    summary="Check a player in with a scanned QR code",
)
async def check_in(
    body: CheckInRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CheckInResponse:
    return await checkin_service.check_in(db, user, body)


@router.get(
    "/trainings/{training_id}",
    response_model=List[AttendanceResponse],
    summary="Players checked in so far",
)
async def list_checkins(
    training_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[AttendanceResponse]:
    return await checkin_service.list_checkins(db, user, training_id)
