"""
Football Academy Backend — Dashboard & Notification Schemas
=============================================================

What:  The four role-specific dashboard payloads and the upcoming-training
       notification items.
How:   Every dashboard carries `role` and `user`. A section that failed to
       load is returned empty; `message` explains a missing team or child.
"""

import datetime as dt
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from academy.schemas.announcement import AnnouncementResponse
from academy.schemas.billing import FinancialSummary, InvoiceResponse
from academy.schemas.match import MatchResponse, TeamPerformance
from academy.schemas.player import PlayerResponse
from academy.schemas.team import TeamResponse
from academy.schemas.training import AttendanceSummary, TrainingResponse
from academy.schemas.user import UserResponse


class AdminCounts(BaseModel):
    users_by_role: Dict[str, int] = Field(default_factory=dict)
    teams: int = 0
    players: int = 0
    upcoming_trainings: int = 0
    upcoming_matches: int = 0


class AdminDashboard(BaseModel):
    role: Literal["admin"] = "admin"
    user: UserResponse
    counts: AdminCounts = Field(default_factory=AdminCounts)
    financial: Optional[FinancialSummary] = None
    recent_announcements: List[AnnouncementResponse] = Field(default_factory=list)


class CoachDashboard(BaseModel):
    role: Literal["coach"] = "coach"
    user: UserResponse
    team: Optional[TeamResponse] = None
    players: List[PlayerResponse] = Field(default_factory=list)
    upcoming_trainings: List[TrainingResponse] = Field(default_factory=list)
    recent_matches: List[MatchResponse] = Field(default_factory=list)
    performance: Optional[TeamPerformance] = None
    message: Optional[str] = None


class ChildOverview(BaseModel):
    player: PlayerResponse
    team: Optional[TeamResponse] = None
    upcoming_trainings: List[TrainingResponse] = Field(default_factory=list)
    attendance: Optional[AttendanceSummary] = None
    outstanding_invoices: List[InvoiceResponse] = Field(default_factory=list)


class ParentDashboard(BaseModel):
    role: Literal["parent"] = "parent"
    user: UserResponse
    children: List[ChildOverview] = Field(default_factory=list)
    message: Optional[str] = None


class PlayerDashboard(BaseModel):
    role: Literal["player"] = "player"
    user: UserResponse
    player: Optional[PlayerResponse] = None
    team: Optional[TeamResponse] = None
    upcoming_trainings: List[TrainingResponse] = Field(default_factory=list)
    attendance: Optional[AttendanceSummary] = None
    message: Optional[str] = None


class TrainingReminder(BaseModel):
    type: Literal["training_reminder"] = "training_reminder"
    training_id: int
    team_id: int
    date: dt.date
    time: dt.time
    location: Optional[str] = None
    message: str
