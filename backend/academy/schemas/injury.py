from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

InjuryType = Literal[
    "muscle_strain",
    "ligament_sprain",
    "bone_fracture",
    "joint_injury",
    "head_injury",
    "cut_laceration",
    "bruise_contusion",
    "overuse_injury",
    "other",
]
Severity = Literal["minor", "moderate", "severe", "critical"]
InjuryLocation = Literal["training", "match", "outside"]


class InjuryCreate(BaseModel):
    player_id: int
    injury_type: InjuryType
    injury_severity: Severity
    injury_date: date
    injury_location: InjuryLocation
    body_part: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = None
    treatment_plan: Optional[str] = None
    expected_recovery_date: Optional[date] = None
    medical_notes: Optional[str] = None
    doctor_name: Optional[str] = Field(default=None, max_length=120)
    follow_up_required: bool = True


class InjuryUpdate(BaseModel):
    injury_type: Optional[InjuryType] = None
    injury_severity: Optional[Severity] = None
    injury_location: Optional[InjuryLocation] = None
    body_part: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = None
    treatment_plan: Optional[str] = None
    expected_recovery_date: Optional[date] = None
    medical_notes: Optional[str] = None
    doctor_name: Optional[str] = Field(default=None, max_length=120)
    follow_up_required: Optional[bool] = None


class RecoveryUpdate(BaseModel):
    recovery_date: Optional[date] = Field(default=None, description="Defaults to today")
    return_to_play_date: Optional[date] = None
    recovery_notes: Optional[str] = None


class InjuryResponse(BaseModel):
    id: int
    player_id: int
    injury_type: str
    injury_severity: str
    injury_date: date
    injury_location: str
    body_part: Optional[str] = None
    description: Optional[str] = None
    treatment_plan: Optional[str] = None
    expected_recovery_date: Optional[date] = None
    actual_recovery_date: Optional[date] = None
    return_to_play_date: Optional[date] = None
    recovery_notes: Optional[str] = None
    medical_notes: Optional[str] = None
    doctor_name: Optional[str] = None
    follow_up_required: bool
    status: str
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TreatmentCreate(BaseModel):
    treatment_type: str = Field(min_length=1, max_length=50)
    treatment_date: date
    provider: Optional[str] = Field(default=None, max_length=120)
    notes: Optional[str] = None


class TreatmentResponse(BaseModel):
    id: int
    injury_id: int
    treatment_type: str
    treatment_date: date
    provider: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class InjuryStatistics(BaseModel):
    total: int = 0
    active: int = 0
    recovered: int = 0
    by_type: Dict[str, int] = {}
    by_severity: Dict[str, int] = {}
    average_recovery_days: Optional[float] = None


class PlayerInjuryHistory(BaseModel):
    player_id: int
    player_name: str
    injuries: List[InjuryResponse]
    statistics: InjuryStatistics
