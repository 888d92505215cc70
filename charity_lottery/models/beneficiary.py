"""Beneficiary ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from charity_lottery.models.base import Base, TokenAmount, utcnow


class Beneficiary(Base):
    """A cause receiving a fixed percentage of every stake placed for it."""

    __tablename__ = "beneficiaries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    total_funds_received: Mapped[int] = mapped_column(TokenAmount, nullable=False, default=0)
    total_bets_supported: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
