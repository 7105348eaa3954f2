"""
Football Academy Backend — Training, Attendance & Check-in Schemas
====================================================================
"""

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

TrainingType = Literal[
    "technical",
    "tactical",
    "physical",
    "match_preparation",
    "recovery",
    "other",
]


class TrainingCreate(BaseModel):
    date: dt.date
    time: dt.time = Field(description="Start time, HH:MM")
    duration: int = Field(default=90, ge=15, le=300, description="Minutes")
    location: Optional[str] = Field(default=None, max_length=120)
    type: TrainingType
    team_id: int
    training_plan: Optional[str] = None
    notes: Optional[str] = None


class TrainingUpdate(BaseModel):
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    duration: Optional[int] = Field(default=None, ge=15, le=300)
    location: Optional[str] = Field(default=None, max_length=120)
    type: Optional[TrainingType] = None
    training_plan: Optional[str] = None
    notes: Optional[str] = None


class TrainingResponse(BaseModel):
    id: int
    date: dt.date
    time: dt.time
    duration: int
    location: Optional[str] = None
    type: str
    team_id: int
    training_plan: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class AttendanceRecord(BaseModel):
    """One row of a bulk attendance submission."""
    player_id: int
    present: bool
    late_minutes: int = Field(default=0, ge=0, le=300)
    absence_reason: Optional[str] = Field(default=None, max_length=255)
    performance_rating: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = None


class AttendanceBulkRequest(BaseModel):
    attendance: List[AttendanceRecord] = Field(min_length=1)


class AttendanceResponse(BaseModel):
    id: int
    training_id: int
    player_id: int
    player_name: Optional[str] = None
    present: bool
    late_minutes: int
    absence_reason: Optional[str] = None
    performance_rating: Optional[int] = None
    notes: Optional[str] = None
    checked_in_at: Optional[dt.datetime] = None


class AttendanceSummary(BaseModel):
    player_id: int
    total_sessions: int
    attended: int
    late: int
    attendance_rate: float = Field(description="Percent of sessions attended, 1 decimal")


# ── QR Check-in ───────────────────────────────────────────────────────────

class QRCodeResponse(BaseModel):
    qr_code: str = Field(description="PNG image as a data: URL")
    token: str
    expires_at: dt.datetime
    training: TrainingResponse


class CheckInRequest(BaseModel):
    # Optional so that missing values reach the service and get a 400
    # with a business message rather than a schema 422
    qr_data: Optional[str] = Field(default=None, description="Raw JSON text read from the QR code")
    player_id: Optional[int] = None


class CheckInResponse(BaseModel):
    message: str
    attendance: AttendanceResponse
