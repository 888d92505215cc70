"""Bet (ticket) ORM model.

A bet is pending while ``winning_number`` is NULL. Settlement sets the
winning number, outcome and ``settled_at`` exactly once.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from charity_lottery.models.base import Base, TokenAmount, utcnow


class Bet(Base):
    """One wager on one chosen number."""

    __tablename__ = "bets"
    __table_args__ = (
        Index("ix_bets_pending_number", "winning_number", "chosen_number"),
        Index("ix_bets_bettor_placed", "bettor_id", "placed_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    bettor_id: Mapped[str] = mapped_column(String(128), ForeignKey("bettors.id"), nullable=False)
    beneficiary_id: Mapped[str] = mapped_column(String(64), ForeignKey("beneficiaries.id"), nullable=False)
    chosen_number: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    stake_amount: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    beneficiary_share: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    house_share: Mapped[int] = mapped_column(TokenAmount, nullable=False)
    pool_share: Mapped[int] = mapped_column(TokenAmount, nullable=False)

    tx_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    block_number: Mapped[int] = mapped_column(Integer, nullable=False)
    placed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

    winning_number: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    is_winner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    prize_amount: Mapped[int | None] = mapped_column(TokenAmount, nullable=True)
    settled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    draw_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    bettor = relationship("Bettor")
    beneficiary = relationship("Beneficiary")

    @property
    def is_pending(self) -> bool:
        return self.winning_number is None
