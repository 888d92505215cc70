"""Checks a candidate bet before anything is written."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from charity_lottery.errors import BeneficiaryNotFound, InvalidNumberRange, NumberAlreadyTaken, StakeTooLow
from charity_lottery.models.base import utcnow
from charity_lottery.repositories.bet_repository import BetRepository
from charity_lottery.repositories.beneficiary_repository import BeneficiaryRepository
from charity_lottery.services.game_rules import GameRules


def coerce_number(value: Any, numbers_range: int) -> int:
    """Return ``value`` as an int in ``[0, numbers_range]`` or raise InvalidNumberRange."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidNumberRange(value, numbers_range)
    if value < 0 or value > numbers_range:
        raise InvalidNumberRange(value, numbers_range)
    return int(value)


class BetValidator:
    """Raises the first violated betting rule; no side effects."""

    def __init__(
        self,
        rules: GameRules,
        bets: BetRepository | None = None,
        beneficiaries: BeneficiaryRepository | None = None,
    ) -> None:
        self._rules = rules
        self._bets = bets or BetRepository()
        self._beneficiaries = beneficiaries or BeneficiaryRepository()

    def round_start(self, now: datetime | None = None) -> datetime:
        return (now or utcnow()) - self._rules.draw_window

    def validate(
        self,
        session: Session,
        *,
        chosen_number: Any,
        bettor_id: str,
        stake_amount: Any,
        beneficiary_id: str,
    ) -> None:
        number = coerce_number(chosen_number, self._rules.numbers_range)

        if self._beneficiaries.get_active(session, beneficiary_id) is None:
            raise BeneficiaryNotFound(beneficiary_id)

        if isinstance(stake_amount, bool) or not isinstance(stake_amount, int):
            raise StakeTooLow(stake_amount, self._rules.min_bet_amount)
        if stake_amount <= 0 or stake_amount < self._rules.min_bet_amount:
            raise StakeTooLow(stake_amount, self._rules.min_bet_amount)

        if self._rules.enforce_unique_numbers:
            holder = self._bets.find_pending_holder(
                session,
                number,
                since=self.round_start(),
                exclude_bettor_id=bettor_id,
            )
            if holder is not None:
                raise NumberAlreadyTaken(number)
