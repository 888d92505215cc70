"""Repository layer for Bet persistence."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select, text, update
from sqlalchemy.orm import Session

from charity_lottery.models.bet import Bet

# pg_advisory_xact_lock key serializing number claims across workers ("LOTT").
NUMBER_CLAIM_LOCK_KEY = 0x4C4F5454


class BetRepository:
    """Ledger reads and the conditional settlement write."""

    def create(self, session: Session, bet: Bet) -> Bet:
        session.add(bet)
        session.flush()
        return bet

    def get_by_id(self, session: Session, bet_id: str) -> Bet | None:
        return session.get(Bet, bet_id)

    def lock_number_claims(self, session: Session) -> bool:
        """Hold a transaction-scoped Postgres advisory lock; no-op elsewhere."""

        if session.get_bind().dialect.name != "postgresql":
            return False
        session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": NUMBER_CLAIM_LOCK_KEY})
        return True

    # ------------------------------------------------------------------
    # Pending bets
    # ------------------------------------------------------------------
    def list_pending(self, session: Session, *, since: datetime | None = None, for_update: bool = False) -> Sequence[Bet]:
        stmt = select(Bet).where(Bet.winning_number.is_(None))
        if since is not None:
            stmt = stmt.where(Bet.placed_at >= since)
        stmt = stmt.order_by(Bet.placed_at.asc(), Bet.id.asc())
        if for_update:
            stmt = stmt.with_for_update()
        return list(session.scalars(stmt).unique().all())

    def count_pending(self, session: Session, *, since: datetime | None = None) -> int:
        stmt = select(func.count()).select_from(Bet).where(Bet.winning_number.is_(None))
        if since is not None:
            stmt = stmt.where(Bet.placed_at >= since)
        return int(session.scalar(stmt) or 0)

    def find_pending_holder(
        self,
        session: Session,
        number: int,
        *,
        since: datetime,
        exclude_bettor_id: str,
    ) -> Bet | None:
        """Pending bet on ``number`` held by someone other than ``exclude_bettor_id``."""

        stmt = (
            select(Bet)
            .where(
                Bet.winning_number.is_(None),
                Bet.chosen_number == int(number),
                Bet.placed_at >= since,
                Bet.bettor_id != exclude_bettor_id,
            )
            .limit(1)
        )
        return session.scalars(stmt).unique().first()

    def taken_numbers(self, session: Session, *, since: datetime) -> list[int]:
        stmt = (
            select(Bet.chosen_number)
            .where(Bet.winning_number.is_(None), Bet.placed_at >= since)
            .distinct()
            .order_by(Bet.chosen_number.asc())
        )
        return [int(n) for n in session.scalars(stmt).all()]

    # ------------------------------------------------------------------
    # Per-bettor status
    # ------------------------------------------------------------------
    def latest_pending_for_bettor(self, session: Session, bettor_id: str) -> Bet | None:
        stmt = (
            select(Bet)
            .where(Bet.bettor_id == bettor_id, Bet.winning_number.is_(None))
            .order_by(Bet.placed_at.desc())
            .limit(1)
        )
        return session.scalars(stmt).unique().first()

    def latest_settled_for_bettor(self, session: Session, bettor_id: str, *, since: datetime) -> Bet | None:
        stmt = (
            select(Bet)
            .where(Bet.bettor_id == bettor_id, Bet.winning_number.is_not(None), Bet.settled_at >= since)
            .order_by(Bet.settled_at.desc())
            .limit(1)
        )
        return session.scalars(stmt).unique().first()

    def latest_placed_at(self, session: Session) -> datetime | None:
        return session.scalar(select(func.max(Bet.placed_at)))

    def latest_settled_at(self, session: Session) -> datetime | None:
        return session.scalar(select(func.max(Bet.settled_at)).where(Bet.winning_number.is_not(None)))

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------
    def settle(
        self,
        session: Session,
        bet_ids: Sequence[str],
        *,
        winning_number: int,
        is_winner: bool,
        prize_amount: int | None,
        settled_at: datetime,
        draw_id: str,
    ) -> int:
        """Settle the given bets if they are still pending; returns rows updated."""

        if not bet_ids:
            return 0

        stmt = (
            update(Bet)
            .where(Bet.id.in_(list(bet_ids)), Bet.winning_number.is_(None))
            .values(
                winning_number=int(winning_number),
                is_winner=bool(is_winner),
                prize_amount=prize_amount,
                settled_at=settled_at,
                draw_id=draw_id,
            )
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        return int(result.rowcount or 0)

    # ------------------------------------------------------------------
    # Settled draws
    # ------------------------------------------------------------------
    def count_draws(self, session: Session) -> int:
        stmt = select(func.count(func.distinct(Bet.draw_id))).where(Bet.draw_id.is_not(None))
        return int(session.scalar(stmt) or 0)

    def list_draw_ids(self, session: Session, *, offset: int, limit: int) -> list[str]:
        """Draw ids ordered newest first."""

        settled = func.max(Bet.settled_at).label("settled")
        stmt = (
            select(Bet.draw_id, settled)
            .where(Bet.draw_id.is_not(None))
            .group_by(Bet.draw_id)
            .order_by(settled.desc(), Bet.draw_id.desc())
            .offset(int(offset))
            .limit(int(limit))
        )
        return [str(row.draw_id) for row in session.execute(stmt).all()]

    def list_by_draw_ids(self, session: Session, draw_ids: Sequence[str]) -> Sequence[Bet]:
        if not draw_ids:
            return []
        stmt = select(Bet).where(Bet.draw_id.in_(list(draw_ids))).order_by(Bet.placed_at.asc(), Bet.id.asc())
        return list(session.scalars(stmt).unique().all())
