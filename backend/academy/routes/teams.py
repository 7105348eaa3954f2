"""
Football Academy Backend — Team Routes
========================================

Route Inventory:
    GET    /api/teams                              list (scoped)
    POST   /api/teams                              create (admin/coach)
    GET    /api/teams/available-coaches            coaches without a team (admin)
    GET    /api/teams/{id}                         detail
    PUT    /api/teams/{id}                         update (admin / own coach)
    DELETE /api/teams/{id}                         delete (admin, empty team only)
    GET    /api/teams/{id}/players                 roster
    POST   /api/teams/{id}/players/{player_id}     add to roster
    DELETE /api/teams/{id}/players/{player_id}     remove from roster
    GET    /api/teams/{id}/coach                   current coach
    PUT    /api/teams/{id}/coach                   assign coach (admin)
    DELETE /api/teams/{id}/coach                   remove coach (admin)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES, MessageResponse
from academy.schemas.player import PlayerResponse
from academy.schemas.team import (
    AssignCoachRequest,
    CoachSummary,
    TeamCreate,
    TeamResponse,
    TeamUpdate,
)
from academy.services.team_service import team_service

router = APIRouter(prefix="/api/teams", tags=["Teams"], responses=ERROR_RESPONSES)


@router.get("", response_model=List[TeamResponse], summary="List visible teams")
async def list_teams(
    include_inactive: bool = Query(default=False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TeamResponse]:
    teams = await team_service.list_teams(db, user, include_inactive=include_inactive)
    return await team_service.to_responses(db, teams)


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED, summary="Create a team")
async def create_team(
    body: TeamCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamResponse:
    team = await team_service.create_team(db, user, body)
    return await team_service.to_response(db, team)


@router.get("/available-coaches", response_model=List[CoachSummary], summary="Coaches without a team")
async def available_coaches(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[CoachSummary]:
    return [CoachSummary.model_validate(c) for c in await team_service.available_coaches(db, user)]


@router.get("/{team_id}", response_model=TeamResponse, summary="Team detail")
async def get_team(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamResponse:
    team = await team_service.get_team_for(db, user, team_id)
    return await team_service.to_response(db, team)


@router.put("/{team_id}", response_model=TeamResponse, summary="Update a team")
async def update_team(
    team_id: int,
    body: TeamUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamResponse:
    team = await team_service.update_team(db, user, team_id, body)
    return await team_service.to_response(db, team)


@router.delete("/{team_id}", response_model=MessageResponse, summary="Delete an empty team")
async def delete_team(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await team_service.delete_team(db, user, team_id)
    return MessageResponse(message="Team deleted")


# ── Roster ────────────────────────────────────────────────────────────────

@router.get("/{team_id}/players", response_model=List[PlayerResponse], summary="Team roster")
async def team_players(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlayerResponse]:
    players = await team_service.list_players(db, user, team_id)
    return [PlayerResponse.model_validate(p) for p in players]


@router.post("/{team_id}/players/{player_id}", response_model=PlayerResponse, summary="Add player to team")
async def add_player(
    team_id: int,
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlayerResponse:
    player = await team_service.add_player(db, user, team_id, player_id)
    return PlayerResponse.model_validate(player)


@router.delete("/{team_id}/players/{player_id}", response_model=PlayerResponse, summary="Remove player from team")
async def remove_player(
    team_id: int,
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlayerResponse:
    player = await team_service.remove_player(db, user, team_id, player_id)
    return PlayerResponse.model_validate(player)


# ── Coach ─────────────────────────────────────────────────────────────────

@router.get("/{team_id}/coach", response_model=Optional[CoachSummary], summary="Current coach")
async def get_coach(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[CoachSummary]:
    await team_service.get_team_for(db, user, team_id)
    coach = await team_service.get_coach(db, team_id)
    return CoachSummary.model_validate(coach) if coach else None


@router.put("/{team_id}/coach", response_model=CoachSummary, summary="Assign coach (admin)")
async def assign_coach(
    team_id: int,
    body: AssignCoachRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CoachSummary:
    coach = await team_service.assign_coach(db, user, team_id, body.coach_id)
    return CoachSummary.model_validate(coach)


@router.delete("/{team_id}/coach", response_model=MessageResponse, summary="Remove coach (admin)")
async def remove_coach(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await team_service.remove_coach(db, user, team_id)
    return MessageResponse(message="Coach removed from team")
