"""Repository layer for Bettor persistence."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from charity_lottery.models.bettor import Bettor


class BettorRepository:
    """Bettor lookups and cumulative counters.

    Counter updates lock the row first; amounts are stored as strings so they
    cannot be incremented in SQL.
    """

    def get_by_id(self, session: Session, bettor_id: str) -> Bettor | None:
        return session.get(Bettor, bettor_id)

    def _locked(self, session: Session, bettor_id: str) -> Bettor | None:
        stmt = select(Bettor).where(Bettor.id == bettor_id).with_for_update()
        return session.scalars(stmt).first()

    def get_or_create(self, session: Session, bettor_id: str) -> tuple[Bettor, bool]:
        bettor = self._locked(session, bettor_id)
        if bettor is not None:
            return bettor, False

        bettor = Bettor(
            id=bettor_id,
            total_wagered=0,
            total_winnings=0,
            total_contributed=0,
            total_wins=0,
            participations=0,
        )
        session.add(bettor)
        session.flush()
        return bettor, True

    def record_wager(self, session: Session, bettor_id: str, *, stake: int, contribution: int) -> Bettor:
        bettor, _ = self.get_or_create(session, bettor_id)
        bettor.total_wagered = int(bettor.total_wagered or 0) + int(stake)
        bettor.total_contributed = int(bettor.total_contributed or 0) + int(contribution)
        bettor.participations = int(bettor.participations or 0) + 1
        return bettor

    def record_win(self, session: Session, bettor_id: str, *, prize: int) -> Bettor:
        bettor = self._locked(session, bettor_id)
        if bettor is None:
            bettor, _ = self.get_or_create(session, bettor_id)
        bettor.total_winnings = int(bettor.total_winnings or 0) + int(prize)
        bettor.total_wins = int(bettor.total_wins or 0) + 1
        return bettor
