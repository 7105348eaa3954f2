"""
Football Academy Backend — Account & Auth Schemas
===================================================

What:  Request/response models for login, tokens and user management.
How:   Passwords only ever appear in request models; UserResponse is built
       from the ORM row and never carries password_hash.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

RoleName = Literal["admin", "coach", "parent", "player"]


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    full_name: Optional[str] = None
    role: RoleName
    team_id: Optional[int] = None
    player_id: Optional[int] = None
    active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    """
    Credentials for POST /api/auth/login.

    Either username or email identifies the account; the frontend sends
    whichever the user typed.
    """
    username: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not (self.username or self.email):
            raise ValueError("username or email is required")
        return self

    @property
    def identifier(self) -> str:
        return (self.username or self.email or "").strip()


class TokenResponse(BaseModel):
    token: str = Field(description="Access token (Bearer)")
    refresh_token: str = Field(description="Refresh token for POST /api/auth/refresh")
    token_type: str = Field(default="bearer")
    expires_in: int = Field(description="Access token lifetime in seconds")
    user: UserResponse


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class AccessTokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int


class VerifyResponse(BaseModel):
    valid: bool
    user: UserResponse


class PermissionsResponse(BaseModel):
    role: RoleName
    permissions: List[str]


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=6, max_length=128)


class ProfileUpdate(BaseModel):
    """Self-service edit: role, team and active flag stay with the admin."""
    username: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, max_length=120)


class ProfilePasswordRequest(ChangePasswordRequest):
    confirm_password: str = Field(min_length=1, max_length=128)

    @model_validator(mode="after")
    def passwords_match(self) -> "ProfilePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("New passwords do not match")
        return self


class EmailAvailabilityResponse(BaseModel):
    email: str
    available: bool


class UserCreate(BaseModel):
    """Admin-only account creation (also used by POST /api/auth/register)."""
    username: str = Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    full_name: Optional[str] = Field(default=None, max_length=120)
    role: RoleName
    team_id: Optional[int] = Field(default=None, description="Coach or player team")
    player_id: Optional[int] = Field(default=None, description="Player account's own record")


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, max_length=120)
    role: Optional[RoleName] = None
    team_id: Optional[int] = None
    player_id: Optional[int] = None
    active: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)


class UserStatistics(BaseModel):
    total: int
    active: int
    inactive: int
    by_role: Dict[str, int]
