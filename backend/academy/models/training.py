"""
Football Academy Backend — Training, Attendance & QR Token Models
===================================================================

What:  Training sessions, per-player attendance rows and the short-lived
       tokens embedded in check-in QR codes.

Attendance lifecycle:
    1. Training created → one row per team player, present=False
    2. Coach records attendance in bulk → rows upserted
    3. QR check-in → row set present=True, checked_in_at stamped,
       notes='QR Check-in'
"""

import datetime as dt
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    false,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base, utcnow

TRAINING_TYPES = (
    "technical",
    "tactical",
    "physical",
    "match_preparation",
    "recovery",
    "other",
)

QR_CHECKIN_NOTE = "QR Check-in"


class Training(Base):
    __tablename__ = "trainings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    duration: Mapped[int] = mapped_column(
        Integer, nullable=False, default=90, server_default=text("90")
    )
    location: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    training_plan: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    # Upcoming/by-team listings filter on team and sort by date
    __table_args__ = (
        Index("idx_trainings_team_date", "team_id", "date"),
    )

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.time)

    def __repr__(self) -> str:
        return f"<Training(id={self.id}, team_id={self.team_id}, date='{self.date}')>"


class Attendance(Base):
    __tablename__ = "attendance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    training_id: Mapped[int] = mapped_column(
        ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    present: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    late_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    absence_reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    performance_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    recorded_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("training_id", "player_id", name="uq_attendance_training_player"),
    )


class TrainingQRToken(Base):
    """
    A check-in token printed inside a training's QR code.

    Only the newest token of a training is honoured; generating a new QR
    code marks older ones inactive.
    """

    __tablename__ = "training_qr_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    training_id: Mapped[int] = mapped_column(
        ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # 32 random bytes, hex encoded
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
