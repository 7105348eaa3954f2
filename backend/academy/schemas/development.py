from datetime import date, datetime
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

PlanType = Literal["technical", "physical", "tactical", "mental", "academic"]
PlanStatus = Literal["active", "paused", "completed", "cancelled"]


class PlanCreate(BaseModel):
    player_id: int
    season: str = Field(min_length=1, max_length=20, examples=["2024/25"])
    plan_type: PlanType
    current_level: int = Field(ge=1, le=10)
    target_level: int = Field(ge=1, le=10)
    goals: str = Field(min_length=1)
    action_steps: str = Field(min_length=1)
    resources_needed: Optional[str] = None
    deadline: Optional[date] = None
    progress_notes: Optional[str] = None
    coach_notes: Optional[str] = None


class PlanUpdate(BaseModel):
    season: Optional[str] = Field(default=None, min_length=1, max_length=20)
    plan_type: Optional[PlanType] = None
    current_level: Optional[int] = Field(default=None, ge=1, le=10)
    target_level: Optional[int] = Field(default=None, ge=1, le=10)
    goals: Optional[str] = Field(default=None, min_length=1)
    action_steps: Optional[str] = Field(default=None, min_length=1)
    resources_needed: Optional[str] = None
    deadline: Optional[date] = None
    status: Optional[PlanStatus] = None
    coach_notes: Optional[str] = None
    parent_feedback: Optional[str] = None


class ProgressUpdate(BaseModel):
    completion_percentage: int = Field(ge=0, le=100)
    progress_notes: Optional[str] = None


class PlanReview(BaseModel):
    coach_notes: Optional[str] = None


class PlanResponse(BaseModel):
    id: int
    player_id: int
    season: str
    plan_type: str
    current_level: int
    target_level: int
    goals: str
    action_steps: str
    resources_needed: Optional[str] = None
    deadline: Optional[date] = None
    status: str
    completion_percentage: int
    progress_notes: Optional[str] = None
    coach_notes: Optional[str] = None
    parent_feedback: Optional[str] = None
    reviewed_by: Optional[int] = None
    review_date: Optional[date] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PlanStatistics(BaseModel):
    total: int = 0
    by_status: Dict[str, int] = {}
    by_type: Dict[str, int] = {}
    average_completion: Optional[float] = None
