from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, text, true
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base, utcnow

DEFAULT_MAX_PLAYERS = 25


class Team(Base):
    """
    An academy squad (e.g. "U12 Eagles", 2024/25 season).

    A team's coach is the active coach user whose users.team_id points here;
    its players are the players rows whose team_id points here.
    """

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    age_group: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    division: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    season: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    max_players: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_MAX_PLAYERS,
        server_default=text(str(DEFAULT_MAX_PLAYERS)),
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name='{self.name}')>"
