"""Bet placement: validation, fund split and the pending ledger entry."""

from __future__ import annotations

import logging
import random
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from threading import Lock

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from charity_lottery.errors import BettorNotFound, TransientStoreError
from charity_lottery.models.base import utcnow
from charity_lottery.models.bet import Bet
from charity_lottery.repositories.bet_repository import BetRepository
from charity_lottery.repositories.beneficiary_repository import BeneficiaryRepository
from charity_lottery.repositories.bettor_repository import BettorRepository
from charity_lottery.services.bet_validator import BetValidator
from charity_lottery.services.game_rules import FundSplit, GameRules
from charity_lottery.services.lottery_events import LotteryEvents, NewTicket

logger = logging.getLogger(__name__)

_rng = random.SystemRandom()


def synthetic_receipt() -> tuple[str, int]:
    """Transaction hash and block number shaped like a chain receipt."""

    return "0x" + secrets.token_hex(32), _rng.randrange(1_000_000, 2_000_000)


def normalize_bettor_id(bettor_id: str) -> str:
    return str(bettor_id).strip().lower()


@dataclass(frozen=True)
class PlacedBet:
    bet_id: str
    bettor_id: str
    beneficiary_id: str
    chosen_number: int
    split: FundSplit
    tx_hash: str
    block_number: int
    placed_at: datetime


class BetLedger:
    """Records accepted bets as pending ledger entries.

    Validation and insert run under one claim lock so two requests for the
    same number cannot both pass the uniqueness check. On Postgres an advisory
    transaction lock extends this across worker processes.
    """

    def __init__(
        self,
        rules: GameRules,
        events: LotteryEvents,
        validator: BetValidator | None = None,
        bets: BetRepository | None = None,
        bettors: BettorRepository | None = None,
        beneficiaries: BeneficiaryRepository | None = None,
    ) -> None:
        self._rules = rules
        self._events = events
        self._bets = bets or BetRepository()
        self._bettors = bettors or BettorRepository()
        self._beneficiaries = beneficiaries or BeneficiaryRepository()
        self._validator = validator or BetValidator(rules, bets=self._bets, beneficiaries=self._beneficiaries)
        self._claim_lock = Lock()

    def place_bet(
        self,
        session: Session,
        *,
        bettor_id: str,
        chosen_number: int,
        beneficiary_id: str,
        stake_amount: int | None = None,
    ) -> PlacedBet:
        bettor_id = normalize_bettor_id(bettor_id)
        stake = self._rules.default_bet_amount if stake_amount is None else stake_amount

        with self._claim_lock:
            try:
                if self._rules.enforce_unique_numbers:
                    self._bets.lock_number_claims(session)

                if self._rules.require_registered_bettor and self._bettors.get_by_id(session, bettor_id) is None:
                    raise BettorNotFound(bettor_id)

                self._validator.validate(
                    session,
                    chosen_number=chosen_number,
                    bettor_id=bettor_id,
                    stake_amount=stake,
                    beneficiary_id=beneficiary_id,
                )

                split = self._rules.split_stake(stake)
                tx_hash, block_number = synthetic_receipt()

                self._bettors.get_or_create(session, bettor_id)
                bet = self._bets.create(
                    session,
                    Bet(
                        id=uuid.uuid4().hex,
                        bettor_id=bettor_id,
                        beneficiary_id=beneficiary_id,
                        chosen_number=int(chosen_number),
                        stake_amount=split.stake,
                        beneficiary_share=split.beneficiary_share,
                        house_share=split.house_share,
                        pool_share=split.pool_share,
                        tx_hash=tx_hash,
                        block_number=block_number,
                        placed_at=utcnow(),
                        is_winner=False,
                    ),
                )
                self._bettors.record_wager(session, bettor_id, stake=split.stake, contribution=split.beneficiary_share)
                self._beneficiaries.record_contribution(session, beneficiary_id, split.beneficiary_share)
                session.commit()
            except OperationalError as exc:
                session.rollback()
                raise TransientStoreError() from exc
            except Exception:
                session.rollback()
                raise

        placed = PlacedBet(
            bet_id=bet.id,
            bettor_id=bettor_id,
            beneficiary_id=beneficiary_id,
            chosen_number=int(chosen_number),
            split=split,
            tx_hash=tx_hash,
            block_number=block_number,
            placed_at=bet.placed_at,
        )
        logger.info("Bet %s placed by %s on %s", placed.bet_id, bettor_id, placed.chosen_number)

        self._events.publish(
            NewTicket(
                ticket_id=placed.bet_id,
                bettor_id=bettor_id,
                chosen_number=placed.chosen_number,
                beneficiary_id=beneficiary_id,
            )
        )
        return placed
