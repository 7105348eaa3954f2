"""
Football Academy Backend — User Account Model
===============================================

What:  SQLAlchemy ORM model for login accounts and their role.
How:   One row per person who can sign in. A coach points at the team they
       run (team_id); a player account points at its own player record
       (player_id). Parents reach their children through
       ParentChildRelationship rows (see models/player.py).

Roles:
    admin   → everything
    coach   → their own team, its players, trainings, matches; billing desk
    parent  → their linked children, their invoices
    player  → their own record and team
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, true
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base, utcnow


class Role(str, enum.Enum):
    ADMIN = "admin"
    COACH = "coach"
    PARENT = "parent"
    PLAYER = "player"


ROLE_VALUES = tuple(role.value for role in Role)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # bcrypt hash via passlib; the plain password is never stored or logged
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    # Coach's team. SET NULL so deleting a team detaches its coach
    team_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Player account's own player record
    player_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("players.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Deactivated accounts cannot log in and their tokens stop working
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'coach', 'parent', 'player')", name="ck_users_role"
        ),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
