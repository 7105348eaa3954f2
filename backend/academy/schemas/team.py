from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TeamBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    age_group: Optional[str] = Field(default=None, max_length=20, examples=["U12"])
    division: Optional[str] = Field(default=None, max_length=50)
    season: Optional[str] = Field(default=None, max_length=20, examples=["2024/25"])
    max_players: int = Field(default=25, ge=1, le=60)
    description: Optional[str] = None
    is_active: bool = True


class TeamCreate(TeamBase):
    pass


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    age_group: Optional[str] = Field(default=None, max_length=20)
    division: Optional[str] = Field(default=None, max_length=50)
    season: Optional[str] = Field(default=None, max_length=20)
    max_players: Optional[int] = Field(default=None, ge=1, le=60)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CoachSummary(BaseModel):
    id: int
    username: str
    full_name: Optional[str] = None
    email: str

    model_config = {"from_attributes": True}


class TeamResponse(TeamBase):
    id: int
    player_count: int = Field(default=0, description="Players currently on the roster")
    coach: Optional[CoachSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AssignCoachRequest(BaseModel):
    coach_id: int = Field(description="User id of an active coach")
