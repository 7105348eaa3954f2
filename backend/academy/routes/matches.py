"""
Football Academy Backend — Match Routes
=========================================

Statistics live under /api/matches/stats/* and are declared before
/{match_id} so the literal paths win.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES, MessageResponse
from academy.schemas.match import (
    MatchCreate,
    MatchEventCreate,
    MatchEventResponse,
    MatchResponse,
    MatchUpdate,
    PlayerForm,
    ScoreUpdate,
    TeamForm,
    TeamPerformance,
    TopScorer,
)
from academy.services.match_service import MAX_STAT_ROWS, match_service

router = APIRouter(prefix="/api/matches", tags=["Matches"], responses=ERROR_RESPONSES)


@router.get("", response_model=List[MatchResponse], summary="List matches")
async def list_matches(
    season: Optional[str] = Query(default=None),
    match_type: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None, description="Match status"),
    team_id: Optional[int] = Query(default=None),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[MatchResponse]:
    matches = await match_service.list_matches(
        db, user,
        season=season, match_type=match_type, status=status,
        team_id=team_id, date_from=date_from, date_to=date_to,
    )
    return [MatchResponse.model_validate(m) for m in matches]


@router.post("", response_model=MatchResponse, status_code=status.HTTP_201_CREATED, summary="Create a match")
async def create_match(
    body: MatchCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MatchResponse:
    return MatchResponse.model_validate(await match_service.create_match(db, user, body))


# ── Statistics ────────────────────────────────────────────────────────────

@router.get("/stats/top-scorers", response_model=List[TopScorer], summary="Top scorers")
async def top_scorers(
    season: Optional[str] = Query(default=None),
    limit: int = Query(default=10, ge=1, le=MAX_STAT_ROWS),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TopScorer]:
    return await match_service.top_scorers(db, user, season=season, limit=limit)


@router.get("/stats/teams/{team_id}/performance", response_model=TeamPerformance, summary="Team record")
async def team_performance(
    team_id: int,
    season: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamPerformance:
    return await match_service.team_performance(db, user, team_id, season=season)


@router.get("/stats/teams/{team_id}/form", response_model=TeamForm, summary="Recent results W/D/L")
async def team_form(
    team_id: int,
    last: int = Query(default=5, ge=1, le=MAX_STAT_ROWS),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TeamForm:
    return await match_service.team_form(db, user, team_id, last=last)


@router.get("/stats/players/{player_id}/form", response_model=PlayerForm, summary="Player goals/assists")
async def player_form(
    player_id: int,
    last: int = Query(default=5, ge=1, le=MAX_STAT_ROWS),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlayerForm:
    return await match_service.player_form(db, user, player_id, last=last)


@router.get("/stats/results", response_model=List[MatchResponse], summary="Completed matches")
async def results(
    season: Optional[str] = Query(default=None),
    team_id: Optional[int] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=MAX_STAT_ROWS),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[MatchResponse]:
    matches = await match_service.results(db, user, season=season, team_id=team_id, limit=limit)
    return [MatchResponse.model_validate(m) for m in matches]


# ── Single Match ──────────────────────────────────────────────────────────

@router.get("/{match_id}", response_model=MatchResponse, summary="Match detail")
async def get_match(
    match_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MatchResponse:
    return MatchResponse.model_validate(await match_service.get_match_for(db, user, match_id))


@router.put("/{match_id}", response_model=MatchResponse, summary="Update a match")
async def update_match(
    match_id: int,
    body: MatchUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MatchResponse:
    return MatchResponse.model_validate(await match_service.update_match(db, user, match_id, body))


@router.delete("/{match_id}", response_model=MessageResponse, summary="Delete a match (admin)")
async def delete_match(
    match_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await match_service.delete_match(db, user, match_id)
    return MessageResponse(message="Match deleted")


@router.put("/{match_id}/score", response_model=MatchResponse, summary="Record the score")
async def update_score(
    match_id: int,
    body: ScoreUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MatchResponse:
    return MatchResponse.model_validate(await match_service.update_score(db, user, match_id, body))


@router.get("/{match_id}/events", response_model=List[MatchEventResponse], summary="Match events")
async def list_events(
    match_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[MatchEventResponse]:
    return [MatchEventResponse.model_validate(e) for e in await match_service.list_events(db, user, match_id)]


@router.post(
    "/{match_id}/events",
    response_model=MatchEventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a match event",
)
async def add_event(
    match_id: int,
    body: MatchEventCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MatchEventResponse:
    return MatchEventResponse.model_validate(await match_service.add_event(db, user, match_id, body))
