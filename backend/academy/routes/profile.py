"""
Football Academy Backend — Profile Routes
===========================================

What:  /api/profile — the signed-in user reads and edits their own account.
Who:   Frontend "My profile" page, for every role.

Role, team link, player link and the active flag are not editable here;
those stay with the admin through /api/users.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES, ErrorResponse, MessageResponse
from academy.schemas.user import ProfilePasswordRequest, ProfileUpdate, UserResponse
from academy.services.auth_service import auth_service
from academy.services.user_service import user_service

router = APIRouter(prefix="/api/profile", tags=["Profile"], responses=ERROR_RESPONSES)


@router.get("", response_model=UserResponse, summary="Own profile")
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put(
    "",
    response_model=UserResponse,
    responses={409: {"description": "Username or email already taken", "model": ErrorResponse}},
    summary="Edit own username, email and name",
)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return UserResponse.model_validate(await user_service.update_profile(db, user, body))


@router.put(
    "/password",
    response_model=MessageResponse,
    responses={400: {"description": "Current password is incorrect", "model": ErrorResponse}},
    summary="Change own password (with confirmation)",
)
async def change_password(
    body: ProfilePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.change_password(db, user, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")
