"""
Football Academy Backend — Injury Models
==========================================

What:  Injury records per player and the treatments given for each.
How:   An injury is active until actual_recovery_date is set. Team scoping
       follows the player's current team, so a transferred player's history
       moves with them.
"""

from datetime import date, datetime
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
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base, utcnow

INJURY_TYPES = (
    "muscle_strain",
    "ligament_sprain",
    "bone_fracture",
    "joint_injury",
    "head_injury",
    "cut_laceration",
    "bruise_contusion",
    "overuse_injury",
    "other",
)
SEVERITIES = ("minor", "moderate", "severe", "critical")
# Where it happened
INJURY_LOCATIONS = ("training", "match", "outside")


class Injury(Base):
    __tablename__ = "injuries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    injury_type: Mapped[str] = mapped_column(String(30), nullable=False)
    injury_severity: Mapped[str] = mapped_column(String(10), nullable=False)
    injury_date: Mapped[date] = mapped_column(Date, nullable=False)
    injury_location: Mapped[str] = mapped_column(String(20), nullable=False)
    body_part: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    treatment_plan: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expected_recovery_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    actual_recovery_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    return_to_play_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    recovery_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    medical_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    doctor_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    follow_up_required: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_injuries_player_date", "player_id", "injury_date"),
    )

    @property
    def status(self) -> str:
        return "active" if self.actual_recovery_date is None else "recovered"


class InjuryTreatment(Base):
    __tablename__ = "injury_treatments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    injury_id: Mapped[int] = mapped_column(
        ForeignKey("injuries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    treatment_type: Mapped[str] = mapped_column(String(50), nullable=False)
    treatment_date: Mapped[date] = mapped_column(Date, nullable=False)
    provider: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
