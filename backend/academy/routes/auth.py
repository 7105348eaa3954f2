"""
Football Academy Backend — Authentication Routes
==================================================

What:  /api/auth/* — login, refresh, register (admin), current user,
       token verification, permissions, password change, email check.
Who:   Frontend login screen and the session bootstrap on page load.

POST /api/auth/login has its own stricter per-IP rate limit
(see RateLimitMiddleware).
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import Role, User
from academy.routes.deps import get_current_user, require_roles
from academy.schemas.common import ERROR_RESPONSES, ErrorResponse, MessageResponse
from academy.schemas.user import (
    AccessTokenResponse,
    ChangePasswordRequest,
    EmailAvailabilityResponse,
    LoginRequest,
    PermissionsResponse,
    RefreshRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
    VerifyResponse,
)
from academy.services.auth_service import auth_service
from academy.services.security import access_token_lifetime_seconds
from academy.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        403: {"description": "Account is deactivated", "model": ErrorResponse},
        429: {"description": "Too many login attempts", "model": ErrorResponse},
    },
    summary="Log in with username or email",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    user, access, refresh = await auth_service.login(db, body.identifier, body.password)
    return TokenResponse(
        token=access,
        refresh_token=refresh,
        expires_in=access_token_lifetime_seconds(),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    responses={401: {"description": "Invalid or expired refresh token", "model": ErrorResponse}},
    summary="Exchange a refresh token for a new access token",
)
async def refresh(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AccessTokenResponse:
    token = await auth_service.refresh(db, body.refresh_token)
    return AccessTokenResponse(token=token, expires_in=access_token_lifetime_seconds())


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**ERROR_RESPONSES, 409: {"description": "Duplicate username or email", "model": ErrorResponse}},
    summary="Create an account (admin only)",
)
async def register(
    body: UserCreate,
    admin: User = Depends(require_roles(Role.ADMIN.value)),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await user_service.create_user(db, body)
    logger.info("Account %s registered by %s", user.username, admin.username)
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse, responses=ERROR_RESPONSES, summary="Current user")
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.get("/verify", response_model=VerifyResponse, responses=ERROR_RESPONSES, summary="Verify token")
async def verify(user: User = Depends(get_current_user)) -> VerifyResponse:
    return VerifyResponse(valid=True, user=UserResponse.model_validate(user))


@router.get(
    "/permissions",
    response_model=PermissionsResponse,
    responses=ERROR_RESPONSES,
    summary="Permission list for the current user's role",
)
async def permissions(user: User = Depends(get_current_user)) -> PermissionsResponse:
    return PermissionsResponse(role=user.role, permissions=auth_service.permissions_for(user.role))


@router.put(
    "/change-password",
    response_model=MessageResponse,
    responses={**ERROR_RESPONSES, 400: {"description": "Current password is incorrect", "model": ErrorResponse}},
    summary="Change own password",
)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.change_password(db, user, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")


@router.get(
    "/check-email",
    response_model=EmailAvailabilityResponse,
    summary="Is this email free for a new account?",
)
async def check_email(
    email: str = Query(min_length=3, max_length=255),
    db: AsyncSession = Depends(get_db_session),
) -> EmailAvailabilityResponse:
    return EmailAvailabilityResponse(
        email=email, available=await auth_service.email_available(db, email)
    )
