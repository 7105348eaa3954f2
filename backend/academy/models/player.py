"""
Football Academy Backend — Player & Family Models
===================================================

What:  Player records and the parent ↔ child links used for access checks.
How:   A player belongs to at most one team (team_id, nullable while
       unassigned). Parent accounts are linked through
       parent_child_relationships; a link is deactivated rather than
       deleted so the history stays visible to admins.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base, utcnow

POSITIONS = ("goalkeeper", "defender", "midfielder", "forward")
DOMINANT_FEET = ("left", "right", "both")


class Player(Base):
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    position: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    dominant_foot: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    team_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Free-text contact details kept on the record for players whose
    # parents have no account yet
    parent_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    parent_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    parent_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    medical_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relative path from STORAGE_ROOT, e.g. players/2024/09/<uuid>.jpg
    profile_image: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "position IS NULL OR position IN ('goalkeeper', 'defender', 'midfielder', 'forward')",
            name="ck_players_position",
        ),
        CheckConstraint(
            "dominant_foot IS NULL OR dominant_foot IN ('left', 'right', 'both')",
            name="ck_players_dominant_foot",
        ),
    )

    def age_on(self, on: date) -> int:
        """Whole years completed on the given day."""
        years = on.year - self.birth_date.year
        if (on.month, on.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years

    def __repr__(self) -> str:
        return f"<Player(id={self.id}, name='{self.name}', team_id={self.team_id})>"


class ParentChildRelationship(Base):
    __tablename__ = "parent_child_relationships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    child_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    relationship_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="parent", server_default=text("'parent'")
    )
    primary_contact: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("parent_id", "child_id", name="uq_parent_child"),
    )
