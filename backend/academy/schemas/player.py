from datetime import date, datetime
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field

Position = Literal["goalkeeper", "defender", "midfielder", "forward"]
DominantFoot = Literal["left", "right", "both"]


def _not_in_future(v: date) -> date:
    if v > date.today():
        raise ValueError("birth_date cannot be in the future")
    return v


BirthDate = Annotated[date, AfterValidator(_not_in_future)]


class PlayerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    birth_date: BirthDate
    position: Optional[Position] = None
    dominant_foot: Optional[DominantFoot] = None
    team_id: Optional[int] = None
    parent_name: Optional[str] = Field(default=None, max_length=120)
    parent_phone: Optional[str] = Field(default=None, max_length=40)
    parent_email: Optional[EmailStr] = None
    medical_notes: Optional[str] = None


class PlayerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    birth_date: Optional[BirthDate] = None
    position: Optional[Position] = None
    dominant_foot: Optional[DominantFoot] = None
    team_id: Optional[int] = None
    parent_name: Optional[str] = Field(default=None, max_length=120)
    parent_phone: Optional[str] = Field(default=None, max_length=40)
    parent_email: Optional[EmailStr] = None
    medical_notes: Optional[str] = None


class PlayerResponse(BaseModel):
    id: int
    name: str
    birth_date: date
    position: Optional[str] = None
    dominant_foot: Optional[str] = None
    team_id: Optional[int] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    parent_email: Optional[str] = None
    medical_notes: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PlayerAgeResponse(BaseModel):
    player_id: int
    name: str
    birth_date: date
    age: int


class AssignParentRequest(BaseModel):
    parent_user_id: int
    relationship_type: str = Field(default="parent", max_length=30)
    primary_contact: bool = False


class ParentLinkResponse(BaseModel):
    id: int
    parent_id: int
    child_id: int
    relationship_type: str
    primary_contact: bool
    active: bool

    model_config = {"from_attributes": True}
