from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base, utcnow

MATCH_TYPES = ("league", "friendly", "cup", "tournament")
MATCH_STATUSES = ("scheduled", "in_progress", "completed", "cancelled", "postponed")
EVENT_TYPES = (
    "goal",
    "assist",
    "yellow_card",
    "red_card",
    "substitution_in",
    "substitution_out",
    "own_goal",
)


class Match(Base):
    """
    A fixture played by an academy team.

    away_team_id is set when both sides are academy teams; games against
    outside clubs carry opponent_name instead.
    """

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    home_team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    away_team_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=True, index=True
    )
    opponent_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    match_date: Mapped[date] = mapped_column(Date, nullable=False)
    match_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    venue: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    match_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="friendly", server_default=text("'friendly'")
    )
    season: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    match_duration: Mapped[int] = mapped_column(
        Integer, nullable=False, default=90, server_default=text("90")
    )
    weather: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    referee: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    match_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="scheduled", server_default=text("'scheduled'")
    )
    home_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    away_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "away_team_id IS NULL OR away_team_id != home_team_id",
            name="ck_matches_distinct_teams",
        ),
        CheckConstraint(
            "(home_score IS NULL OR home_score >= 0) AND (away_score IS NULL OR away_score >= 0)",
            name="ck_matches_scores_non_negative",
        ),
        Index("idx_matches_date", "match_date"),
    )

    def team_ids(self) -> set:
        return {tid for tid in (self.home_team_id, self.away_team_id) if tid is not None}

    def __repr__(self) -> str:
        return (
            f"<Match(id={self.id}, home={self.home_team_id}, "
            f"away={self.away_team_id or self.opponent_name}, date='{self.match_date}')>"
        )


class MatchEvent(Base):
    __tablename__ = "match_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    match_id: Mapped[int] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(String(30), nullable=False)
    minute: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    assisted_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("players.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
