from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

Category = Literal["general", "training", "match", "event", "urgent"]


class AnnouncementCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    category: Category = "general"
    team_id: Optional[int] = Field(default=None, description="Null publishes academy-wide")
    urgent: bool = False


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    category: Optional[Category] = None
    urgent: Optional[bool] = None


class AnnouncementResponse(BaseModel):
    id: int
    title: str
    content: str
    category: str
    team_id: Optional[int] = None
    urgent: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
