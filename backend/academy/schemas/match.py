from datetime import date, datetime, time
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

MatchType = Literal["league", "friendly", "cup", "tournament"]
MatchStatus = Literal["scheduled", "in_progress", "completed", "cancelled", "postponed"]
EventType = Literal[
    "goal",
    "assist",
    "yellow_card",
    "red_card",
    "substitution_in",
    "substitution_out",
    "own_goal",
]


class MatchCreate(BaseModel):
    home_team_id: int
    away_team_id: Optional[int] = Field(default=None, description="Academy opponent, if any")
    opponent_name: Optional[str] = Field(default=None, max_length=120)
    match_date: date
    match_time: Optional[time] = None
    venue: Optional[str] = Field(default=None, max_length=120)
    match_type: MatchType = "friendly"
    season: Optional[str] = Field(default=None, max_length=20)
    match_duration: int = Field(default=90, ge=10, le=150)
    weather: Optional[str] = Field(default=None, max_length=60)
    referee: Optional[str] = Field(default=None, max_length=120)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_opponent(self) -> "MatchCreate":
        if self.away_team_id is not None and self.away_team_id == self.home_team_id:
            raise ValueError("home_team_id and away_team_id must differ")
        if self.away_team_id is None and not self.opponent_name:
            raise ValueError("either away_team_id or opponent_name is required")
        return self


class MatchUpdate(BaseModel):
    match_date: Optional[date] = None
    match_time: Optional[time] = None
    venue: Optional[str] = Field(default=None, max_length=120)
    match_type: Optional[MatchType] = None
    season: Optional[str] = Field(default=None, max_length=20)
    match_duration: Optional[int] = Field(default=None, ge=10, le=150)
    weather: Optional[str] = Field(default=None, max_length=60)
    referee: Optional[str] = Field(default=None, max_length=120)
    notes: Optional[str] = None
    match_status: Optional[MatchStatus] = None
    opponent_name: Optional[str] = Field(default=None, max_length=120)


class ScoreUpdate(BaseModel):
    # Range is checked in the service so a negative score gets the
    # academy's 400 error shape
    home_score: int
    away_score: int
    match_status: Optional[MatchStatus] = None


class MatchResponse(BaseModel):
    id: int
    home_team_id: int
    away_team_id: Optional[int] = None
    opponent_name: Optional[str] = None
    match_date: date
    match_time: Optional[time] = None
    venue: Optional[str] = None
    match_type: str
    season: Optional[str] = None
    match_duration: int
    weather: Optional[str] = None
    referee: Optional[str] = None
    notes: Optional[str] = None
    match_status: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    created_by: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class MatchEventCreate(BaseModel):
    player_id: int
    team_id: int
    event_type: EventType
    minute: Optional[int] = Field(default=None, ge=0, le=130)
    description: Optional[str] = Field(default=None, max_length=255)
    assisted_by: Optional[int] = None


class MatchEventResponse(BaseModel):
    id: int
    match_id: int
    player_id: int
    team_id: int
    event_type: str
    minute: Optional[int] = None
    description: Optional[str] = None
    assisted_by: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TopScorer(BaseModel):
    player_id: int
    player_name: str
    team_id: Optional[int] = None
    goals: int


class TeamPerformance(BaseModel):
    team_id: int
    team_name: str
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    points: int = 0


class TeamForm(BaseModel):
    team_id: int
    form: List[Literal["W", "D", "L"]] = Field(description="Newest result first")


class PlayerFormEntry(BaseModel):
    match_id: int
    match_date: date
    goals: int
    assists: int


class PlayerForm(BaseModel):
    player_id: int
    matches: List[PlayerFormEntry]
