"""
Football Academy Backend — User Management Routes (admin only)
================================================================
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import Role, User
from academy.routes.deps import require_roles
from academy.schemas.common import ERROR_RESPONSES
from academy.schemas.user import UserCreate, UserResponse, UserStatistics, UserUpdate
from academy.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"], responses=ERROR_RESPONSES)

admin_only = require_roles(Role.ADMIN.value)


@router.get("", response_model=List[UserResponse], summary="List accounts")
async def list_users(
    role: Optional[str] = Query(default=None, description="admin, coach, parent or player"),
    active: Optional[bool] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100, description="Username, email or name"),
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserResponse]:
    users = await user_service.list_users(db, role=role, active=active, search=search)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/statistics", response_model=UserStatistics, summary="Account counts")
async def user_statistics(
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db_session),
) -> UserStatistics:
    return await user_service.statistics(db)


@router.get("/{user_id}", response_model=UserResponse, summary="Get an account")
async def get_user(
    user_id: int,
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return UserResponse.model_validate(await user_service.get_user(db, user_id))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED, summary="Create an account")
async def create_user(
    body: UserCreate,
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return UserResponse.model_validate(await user_service.create_user(db, body))


@router.put("/{user_id}", response_model=UserResponse, summary="Update an account")
async def update_user(
    user_id: int,
    body: UserUpdate,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return UserResponse.model_validate(await user_service.update_user(db, admin, user_id, body))


@router.delete("/{user_id}", response_model=UserResponse, summary="Deactivate an account")
async def deactivate_user(
    user_id: int,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return UserResponse.model_validate(await user_service.deactivate_user(db, admin, user_id))
