"""Draw settlement.

A draw picks (or is given) a winning number and settles every candidate
pending bet in one transaction. Winners share the batch pool equally; the
integer-division remainder is kept by the house and reported as
``undistributed_remainder``. The storage work sits behind a
``SettlementBackend`` so a chain-backed ledger can replace the database one.
"""

from __future__ import annotations

import logging
import random
import secrets
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from charity_lottery.errors import ConfigError, DrawExecutionFailed, NoPendingBets
from charity_lottery.models.base import utcnow
from charity_lottery.models.bet import Bet
from charity_lottery.repositories.bet_repository import BetRepository
from charity_lottery.repositories.bettor_repository import BettorRepository
from charity_lottery.services.bet_validator import coerce_number
from charity_lottery.services.game_rules import GameRules
from charity_lottery.services.lottery_events import (
    DrawCompleted,
    DrawStarted,
    LotteryEvents,
    NumbersDrawn,
    TicketResult,
)

logger = logging.getLogger(__name__)

_rng = random.SystemRandom()


@dataclass(frozen=True)
class Winner:
    bettor_id: str
    bet_id: str
    prize_amount: int
    matched: int = 1


@dataclass(frozen=True)
class DrawResult:
    draw_id: str
    winning_number: int
    winners: list[Winner]
    tx_hash: str
    total_pool: int
    participant_count: int
    undistributed_remainder: int
    settled_at: datetime


@dataclass
class SettlementBatch:
    """What a backend needs to persist one draw."""

    draw_id: str
    winning_number: int
    winners: list[Bet] = field(default_factory=list)
    losers: list[Bet] = field(default_factory=list)
    prize_per_winner: int = 0
    settled_at: datetime = field(default_factory=utcnow)


def new_draw_id() -> str:
    return f"draw_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def split_pool(total_pool: int, winner_count: int) -> tuple[int, int]:
    """Equal prize per winner and the remainder left over."""

    if winner_count <= 0:
        return 0, total_pool
    prize = total_pool // winner_count
    return prize, total_pool - prize * winner_count


class SettlementBackend(ABC):
    """Where pending bets come from and where settlement is written."""

    name: str = "abstract"

    @abstractmethod
    def load_candidates(self, session: Session, *, since: datetime | None) -> Sequence[Bet]:
        """Pending bets eligible for this draw, locked for the transaction."""

    @abstractmethod
    def apply(self, session: Session, batch: SettlementBatch) -> str:
        """Write the settlement; returns a transaction reference."""


class MockSettlementBackend(SettlementBackend):
    """Settles directly against the database ledger."""

    name = "mock"

    def __init__(self, bets: BetRepository | None = None, bettors: BettorRepository | None = None) -> None:
        self._bets = bets or BetRepository()
        self._bettors = bettors or BettorRepository()

    def load_candidates(self, session: Session, *, since: datetime | None) -> Sequence[Bet]:
        return self._bets.list_pending(session, since=since, for_update=True)

    def apply(self, session: Session, batch: SettlementBatch) -> str:
        # Each update only touches rows that are still pending; a short count
        # means another draw got there first.
        for bets, is_winner, prize in (
            (batch.winners, True, batch.prize_per_winner),
            (batch.losers, False, None),
        ):
            updated = self._bets.settle(
                session,
                [b.id for b in bets],
                winning_number=batch.winning_number,
                is_winner=is_winner,
                prize_amount=prize,
                settled_at=batch.settled_at,
                draw_id=batch.draw_id,
            )
            if updated != len(bets):
                raise DrawExecutionFailed(f"expected {len(bets)} pending rows, updated {updated}")

        for bet in batch.winners:
            self._bettors.record_win(session, bet.bettor_id, prize=batch.prize_per_winner)

        return "0x" + secrets.token_hex(32)


class OnChainSettlementBackend(SettlementBackend):
    name = "onchain"

    def __init__(self) -> None:
        raise ConfigError("SETTLEMENT_BACKEND=onchain is not available")

    def load_candidates(self, session: Session, *, since: datetime | None) -> Sequence[Bet]:  # pragma: no cover
        raise NotImplementedError

    def apply(self, session: Session, batch: SettlementBatch) -> str:  # pragma: no cover
        raise NotImplementedError


_BACKENDS: dict[str, type[SettlementBackend]] = {
    MockSettlementBackend.name: MockSettlementBackend,
    OnChainSettlementBackend.name: OnChainSettlementBackend,
}


def create_settlement_backend(config: Mapping[str, Any]) -> SettlementBackend:
    name = str(config.get("SETTLEMENT_BACKEND") or "mock").lower().strip()
    backend_cls = _BACKENDS.get(name)
    if backend_cls is None:
        raise ConfigError(f"Unknown SETTLEMENT_BACKEND {name!r}; expected one of {sorted(_BACKENDS)}")
    return backend_cls()


class DrawSettlementEngine:
    """Runs draws one at a time and publishes their lifecycle events."""

    def __init__(self, rules: GameRules, events: LotteryEvents, backend: SettlementBackend | None = None) -> None:
        self._rules = rules
        self._events = events
        self._backend = backend or MockSettlementBackend()
        self._draw_lock = Lock()

    @property
    def backend(self) -> SettlementBackend:
        return self._backend

    def pick_winning_number(self) -> int:
        return _rng.randint(0, self._rules.numbers_range)

    def execute_draw(
        self,
        session: Session,
        *,
        winning_number: int | None = None,
        restrict_to_recent: bool = False,
        require_participants: bool = False,
    ) -> DrawResult:
        """Settle every candidate pending bet against one winning number.

        Args:
            winning_number: forced result; drawn at random when omitted.
            restrict_to_recent: only bets placed within the draw window.
            require_participants: raise NoPendingBets instead of settling an empty draw.

        Raises:
            InvalidNumberRange: forced number outside the game range.
            NoPendingBets: ``require_participants`` and nothing to settle.
            DrawExecutionFailed: the transaction was rolled back; safe to retry.
        """

        if winning_number is not None:
            winning_number = coerce_number(winning_number, self._rules.numbers_range)

        since = utcnow() - self._rules.draw_window if restrict_to_recent else None
        draw_id = new_draw_id()

        with self._draw_lock:
            try:
                candidates = list(self._backend.load_candidates(session, since=since))
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Draw %s could not load pending bets", draw_id)
                raise DrawExecutionFailed(str(exc)) from exc

            if require_participants and not candidates:
                session.rollback()
                raise NoPendingBets()

            self._events.publish(
                DrawStarted(
                    draw_id=draw_id,
                    estimated_duration=self._rules.estimated_draw_duration_ms,
                    participant_count=len(candidates),
                )
            )
            logger.info("Draw %s started with %s participants", draw_id, len(candidates))

            if winning_number is None:
                winning_number = self.pick_winning_number()

            winners = [b for b in candidates if int(b.chosen_number) == winning_number]
            losers = [b for b in candidates if int(b.chosen_number) != winning_number]
            total_pool = sum(int(b.pool_share) for b in candidates)
            prize, remainder = split_pool(total_pool, len(winners))
            winner_rows = [(b.id, b.bettor_id, int(b.chosen_number)) for b in winners]

            batch = SettlementBatch(
                draw_id=draw_id,
                winning_number=winning_number,
                winners=winners,
                losers=losers,
                prize_per_winner=prize,
            )

            try:
                tx_hash = self._backend.apply(session, batch)
                session.commit()
            except DrawExecutionFailed as exc:
                session.rollback()
                logger.error("Draw %s rolled back: %s", draw_id, exc.reason)
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Draw %s failed while settling", draw_id)
                raise DrawExecutionFailed(str(exc)) from exc

            # Bulk updates bypass the identity map.
            session.expire_all()

        result = DrawResult(
            draw_id=draw_id,
            winning_number=winning_number,
            winners=[Winner(bettor_id=bettor_id, bet_id=bet_id, prize_amount=prize) for bet_id, bettor_id, _ in winner_rows],
            tx_hash=tx_hash,
            total_pool=total_pool,
            participant_count=len(candidates),
            undistributed_remainder=remainder,
            settled_at=batch.settled_at,
        )
        logger.info(
            "Draw %s settled: number=%s winners=%s pool=%s",
            draw_id,
            winning_number,
            len(result.winners),
            total_pool,
        )

        self._publish_results(result, [number for _, _, number in winner_rows])
        return result

    def _publish_results(self, result: DrawResult, chosen_numbers: Sequence[int]) -> None:
        self._events.publish(NumbersDrawn(draw_id=result.draw_id, winning_number=result.winning_number))
        for chosen_number, winner in zip(chosen_numbers, result.winners):
            self._events.publish(
                TicketResult(
                    ticket_id=winner.bet_id,
                    bettor_id=winner.bettor_id,
                    chosen_number=chosen_number,
                    winning_number=result.winning_number,
                    is_winner=True,
                    prize_amount=winner.prize_amount,
                    draw_id=result.draw_id,
                )
            )
        self._events.publish(
            DrawCompleted(
                draw_id=result.draw_id,
                winning_number=result.winning_number,
                winner_count=len(result.winners),
                participant_count=result.participant_count,
                total_pool=result.total_pool,
            )
        )
