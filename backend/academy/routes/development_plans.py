"""
Football Academy Backend — Development Plan Routes
====================================================
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES, MessageResponse
from academy.schemas.development import (
    PlanCreate,
    PlanResponse,
    PlanReview,
    PlanStatistics,
    PlanStatus,
    PlanType,
    PlanUpdate,
    ProgressUpdate,
)
from academy.services.development_service import development_service

router = APIRouter(
    prefix="/api/development-plans", tags=["Development Plans"], responses=ERROR_RESPONSES
)


@router.get("", response_model=List[PlanResponse], summary="Development plans (staff)")
async def list_plans(
    status_filter: Optional[PlanStatus] = Query(default=None, alias="status"),
    plan_type: Optional[PlanType] = Query(default=None),
    season: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlanResponse]:
    rows = await development_service.list_plans(
        db, user, status=status_filter, plan_type=plan_type, season=season
    )
    return [PlanResponse.model_validate(p) for p in rows]


@router.get("/active", response_model=List[PlanResponse], summary="Active plans")
async def active_plans(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlanResponse]:
    return [PlanResponse.model_validate(p) for p in await development_service.active_plans(db, user)]


@router.get("/stats", response_model=PlanStatistics, summary="Plan statistics")
async def plan_statistics(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlanStatistics:
    return await development_service.statistics(db, user)


@router.get("/player/{player_id}", response_model=List[PlanResponse], summary="A player's plans")
async def plans_for_player(
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlanResponse]:
    rows = await development_service.by_player(db, user, player_id)
    return [PlanResponse.model_validate(p) for p in rows]


@router.get("/{plan_id}", response_model=PlanResponse, summary="Plan detail")
async def get_plan(
    plan_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlanResponse:
    return PlanResponse.model_validate(await development_service.get_plan(db, user, plan_id))


@router.post(
    "",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a development plan",
)
async def create_plan(
    body: PlanCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlanResponse:
    return PlanResponse.model_validate(await development_service.create_plan(db, user, body))


@router.put("/{plan_id}", response_model=PlanResponse, summary="Edit a plan")
async def update_plan(
    plan_id: int,
    body: PlanUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlanResponse:
    return PlanResponse.model_validate(
        await development_service.update_plan(db, user, plan_id, body)
    )


@router.put("/{plan_id}/progress", response_model=PlanResponse, summary="Record progress")
async def update_progress(
    plan_id: int,
    body: ProgressUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlanResponse:
    return PlanResponse.model_validate(
        await development_service.update_progress(db, user, plan_id, body)
    )


@router.put("/{plan_id}/review", response_model=PlanResponse, summary="Coach review")
async def review_plan(
    plan_id: int,
    body: PlanReview,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlanResponse:
    return PlanResponse.model_validate(
        await development_service.review_plan(db, user, plan_id, body)
    )


@router.delete("/{plan_id}", response_model=MessageResponse, summary="Delete a plan (admin)")
async def delete_plan(
    plan_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await development_service.delete_plan(db, user, plan_id)
    return MessageResponse(message="Development plan deleted")
