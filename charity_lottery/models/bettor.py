"""Bettor ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from charity_lottery.models.base import Base, TokenAmount, utcnow


class Bettor(Base):
    """Cumulative statistics for one bettor identity (lower-cased)."""

    __tablename__ = "bettors"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    total_wagered: Mapped[int] = mapped_column(TokenAmount, nullable=False, default=0)
    total_winnings: Mapped[int] = mapped_column(TokenAmount, nullable=False, default=0)
    total_contributed: Mapped[int] = mapped_column(TokenAmount, nullable=False, default=0)
    total_wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    participations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
