"""
Football Academy Backend — Player Routes
==========================================

What:  /api/players/* — roster records, parent links and profile photos.
Who:   Frontend player list, player profile and parent portal.

Photo upload flow:
    1. Client sends multipart/form-data with a 'file' field
    2. Content is read into memory (bounded by MAX_FILE_SIZE validation)
    3. PlayerService validates, stores and swaps profile_image
    4. The route commits, then removes the replaced file
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.exceptions import DatabaseError
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES, ErrorResponse, MessageResponse
from academy.schemas.player import (
    AssignParentRequest,
    ParentLinkResponse,
    PlayerAgeResponse,
    PlayerCreate,
    PlayerResponse,
    PlayerUpdate,
)
from academy.schemas.user import UserResponse
from academy.services.file_service import file_service
from academy.services.player_service import player_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/players", tags=["Players"], responses=ERROR_RESPONSES)


async def _commit_then_cleanup(
    db: AsyncSession, stale: Optional[str], fresh: Optional[str] = None
) -> None:
    """Commit, then remove the replaced photo; a failed commit removes the new one."""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        logger.error("Commit failed after photo change: %s", e)
        if fresh:
            await file_service.cleanup_file(fresh)
        raise DatabaseError(context={"original_error": type(e).__name__})
    if stale:
        await file_service.cleanup_file(stale)


@router.get("", response_model=List[PlayerResponse], summary="List players (admin/coach)")
async def list_players(
    team_id: Optional[int] = Query(default=None),
    position: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlayerResponse]:
    players = await player_service.list_players(
        db, user, team_id=team_id, position=position, search=search
    )
    return [PlayerResponse.model_validate(p) for p in players]


@router.post("", response_model=PlayerResponse, status_code=status.HTTP_201_CREATED, summary="Create a player")
async def create_player(
    body: PlayerCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlayerResponse:
    return PlayerResponse.model_validate(await player_service.create_player(db, user, body))


@router.get("/team/{team_id}", response_model=List[PlayerResponse], summary="Players of a team")
async def players_by_team(
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlayerResponse]:
    return [PlayerResponse.model_validate(p) for p in await player_service.by_team(db, user, team_id)]


@router.get("/my-children", response_model=List[PlayerResponse], summary="The calling parent's children")
async def my_children(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlayerResponse]:
    children = await player_service.children_of(db, user, user.id)
    return [PlayerResponse.model_validate(p) for p in children]


@router.get(
    "/parent/{parent_id}/children",
    response_model=List[PlayerResponse],
    summary="Children of a parent (admin, or the parent themselves)",
)
async def children_of_parent(
    parent_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlayerResponse]:
    children = await player_service.children_of(db, user, parent_id)
    return [PlayerResponse.model_validate(p) for p in children]


@router.get("/{player_id}", response_model=PlayerResponse, summary="Player detail")
async def get_player(
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlayerResponse:
    return PlayerResponse.model_validate(await player_service.get_player_for(db, user, player_id))


@router.get("/{player_id}/age", response_model=PlayerAgeResponse, summary="Player age in whole years")
async def player_age(
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlayerAgeResponse:
    return await player_service.age(db, user, player_id)


@router.put("/{player_id}", response_model=PlayerResponse, summary="Update a player")
async def update_player(
    player_id: int,
    body: PlayerUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlayerResponse:
    return PlayerResponse.model_validate(
        await player_service.update_player(db, user, player_id, body)
    )


@router.delete("/{player_id}", response_model=MessageResponse, summary="Delete a player (admin)")
async def delete_player(
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    photo = await player_service.delete_player(db, user, player_id)
    await _commit_then_cleanup(db, photo)
    return MessageResponse(message="Player deleted")


# ── Parents ───────────────────────────────────────────────────────────────

@router.get("/{player_id}/parents", response_model=List[UserResponse], summary="Linked parent accounts")
async def player_parents(
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserResponse]:
    return [UserResponse.model_validate(u) for u in await player_service.parents_of(db, user, player_id)]


@router.post("/{player_id}/parents", response_model=ParentLinkResponse, summary="Link a parent account")
async def assign_parent(
    player_id: int,
    body: AssignParentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ParentLinkResponse:
    link = await player_service.assign_parent(db, user, player_id, body)
    return ParentLinkResponse.model_validate(link)


@router.delete(
    "/{player_id}/parents/{parent_id}",
    response_model=MessageResponse,
    summary="Unlink a parent account",
)
async def remove_parent(
    player_id: int,
    parent_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await player_service.remove_parent(db, user, player_id, parent_id)
    return MessageResponse(message="Parent link removed")


# ── Photo ─────────────────────────────────────────────────────────────────

@router.post(
    "/{player_id}/photo",
    response_model=PlayerResponse,
    responses={400: {"description": "Invalid file type or size", "model": ErrorResponse}},
    summary="Upload a profile photo (PNG or JPEG)",
)
async def upload_photo(
    player_id: int,
    file: UploadFile = File(..., description="PNG or JPEG image"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlayerResponse:
    content = await file.read()
    logger.info(
        "Photo upload for player %d: filename=%s, size=%d bytes",
        player_id, file.filename or "unknown", len(content),
    )
    try:
        player, replaced = await player_service.upload_photo(
            db,
            user,
            player_id,
            filename=file.filename or "photo.jpg",
            content=content,
            content_length=file.size,
        )
    finally:
        await file.close()
    await _commit_then_cleanup(db, replaced, fresh=player.profile_image)
    return PlayerResponse.model_validate(player)


@router.get(
    "/{player_id}/photo",
    responses={200: {"description": "Image file"}, 404: {"description": "No photo", "model": ErrorResponse}},
    summary="Download the profile photo",
)
async def get_photo(
    player_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FileResponse:
    path = await player_service.photo_path(db, user, player_id)
    return FileResponse(
        path=str(path),
        media_type="image/png" if path.suffix == ".png" else "image/jpeg",
        headers={"Cache-Control": "private, max-age=3600"},
    )
