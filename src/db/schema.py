"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    board: Mapped[list[Optional[str]]] = mapped_column(JSON)
    move_history: Mapped[list[int]] = mapped_column(JSON, default=list)
    current_player: Mapped[str]
    player_turn: Mapped[str]
    winner: Mapped[Optional[str]]
    players: Mapped[dict[str, str]] = mapped_column(JSON)
    player_count: Mapped[int] = mapped_column(default=0)
    win_count: Mapped[dict[str, int]] = mapped_column(JSON)
    is_draw: Mapped[bool] = mapped_column(default=False)
    deleted: Mapped[bool] = mapped_column(default=False)
    revision: Mapped[int] = mapped_column(default=1)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
