"""
Football Academy Backend — Injury Routes
==========================================
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES, MessageResponse
from academy.schemas.injury import (
    InjuryCreate,
    InjuryResponse,
    InjuryStatistics,
    InjuryUpdate,
    PlayerInjuryHistory,
    RecoveryUpdate,
    Severity,
    TreatmentCreate,
    TreatmentResponse,
)
from academy.services.injury_service import injury_service

router = APIRouter(prefix="/api/injuries", tags=["Injuries"], responses=ERROR_RESPONSES)


@router.get("", response_model=List[InjuryResponse], summary="Injury log (staff)")
async def list_injuries(
    player_id: Optional[int] = Query(default=None),
    team_id: Optional[int] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    severity: Optional[Severity] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[InjuryResponse]:
    rows = await injury_service.list_injuries(
        db, user, player_id=player_id, team_id=team_id, status=status_filter, severity=severity
    )
    return [InjuryResponse.model_validate(i) for i in rows]


@router.get("/active", response_model=List[InjuryResponse], summary="Players currently injured")
async def active_injuries(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[InjuryResponse]:
    return [InjuryResponse.model_validate(i) for i in await injury_service.active_injuries(db, user)]


@router.get("/stats", response_model=InjuryStatistics, summary="Injury statistics")
async def injury_statistics(
    team_id: Optional[int] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InjuryStatistics:
    return await injury_service.statistics(db, user, team_id=team_id)


@router.get(
    "/player/{player_id}",
    response_model=PlayerInjuryHistory,
    summary="A player's injury history",
)
async def player_history(
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlayerInjuryHistory:
    return await injury_service.player_history(db, user, player_id)


@router.get("/{injury_id}", response_model=InjuryResponse, summary="Injury detail")
async def get_injury(
    injury_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InjuryResponse:
    return InjuryResponse.model_validate(await injury_service.get_injury(db, user, injury_id))


@router.post(
    "",
    response_model=InjuryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an injury",
)
async def create_injury(
    body: InjuryCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InjuryResponse:
    return InjuryResponse.model_validate(await injury_service.create_injury(db, user, body))


@router.put("/{injury_id}", response_model=InjuryResponse, summary="Edit an injury")
async def update_injury(
    injury_id: int,
    body: InjuryUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InjuryResponse:
    return InjuryResponse.model_validate(
        await injury_service.update_injury(db, user, injury_id, body)
    )


@router.put("/{injury_id}/recovery", response_model=InjuryResponse, summary="Mark recovered")
async def record_recovery(
    injury_id: int,
    body: RecoveryUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InjuryResponse:
    return InjuryResponse.model_validate(
        await injury_service.record_recovery(db, user, injury_id, body)
    )


@router.delete("/{injury_id}", response_model=MessageResponse, summary="Delete an injury (admin)")
async def delete_injury(
    injury_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await injury_service.delete_injury(db, user, injury_id)
    return MessageResponse(message="Injury deleted")


@router.get(
    "/{injury_id}/treatments",
    response_model=List[TreatmentResponse],
    summary="Treatments for an injury",
)
async def list_treatments(
    injury_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TreatmentResponse]:
    rows = await injury_service.treatments(db, user, injury_id)
    return [TreatmentResponse.model_validate(t) for t in rows]


@router.post(
    "/{injury_id}/treatments",
    response_model=TreatmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a treatment",
)
async def add_treatment(
    injury_id: int,
    body: TreatmentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TreatmentResponse:
    return TreatmentResponse.model_validate(
        await injury_service.add_treatment(db, user, injury_id, body)
    )
