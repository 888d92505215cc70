from __future__ import annotations

import pytest

from charity_lottery.errors import BeneficiaryNotFound, InvalidNumberRange, NumberAlreadyTaken, StakeTooLow
from charity_lottery.services.bet_validator import BetValidator
from charity_lottery.services.game_rules import GameRules


@pytest.fixture()
def validator():
    return BetValidator(GameRules(min_bet_amount=10))


@pytest.fixture()
def unique_validator():
    return BetValidator(GameRules(min_bet_amount=1, enforce_unique_numbers=True))


def _check(validator, session, **kwargs):
    params = {"chosen_number": 7, "bettor_id": "alice", "stake_amount": 10, "beneficiary_id": "red-cross"}
    params.update(kwargs)
    validator.validate(session, **params)


@pytest.mark.parametrize("number", [0, 1, 50, 99])
def test_accepts_numbers_in_range(validator, session, number):
    _check(validator, session, chosen_number=number)


@pytest.mark.parametrize("number", [-1, 100, 1000, 7.5, "7", None, True])
def test_rejects_numbers_out_of_range_or_not_integers(validator, session, number):
    with pytest.raises(InvalidNumberRange):
        _check(validator, session, chosen_number=number)


@pytest.mark.parametrize("beneficiary_id", ["nobody", "closed"])
def test_rejects_unknown_or_inactive_beneficiary(validator, session, beneficiary_id):
    with pytest.raises(BeneficiaryNotFound):
        _check(validator, session, beneficiary_id=beneficiary_id)


@pytest.mark.parametrize("stake", [9, 0, -10, "ten"])
def test_rejects_stake_below_minimum(validator, session, stake):
    with pytest.raises(StakeTooLow):
        _check(validator, session, stake_amount=stake)


def test_range_is_checked_before_beneficiary(validator, session):
    with pytest.raises(InvalidNumberRange):
        _check(validator, session, chosen_number=500, beneficiary_id="nobody")


def test_number_taken_by_other_bettor_is_rejected(unique_validator, session, place):
    place("bob", 7)

    with pytest.raises(NumberAlreadyTaken):
        _check(unique_validator, session, chosen_number=7, bettor_id="alice")


def test_same_bettor_may_repeat_a_number(unique_validator, session, place):
    place("alice", 7)

    _check(unique_validator, session, chosen_number=7, bettor_id="alice")


def test_uniqueness_disabled_allows_shared_numbers(validator, session, place):
    place("bob", 7)

    _check(validator, session, chosen_number=7, bettor_id="alice")


def test_settled_numbers_are_free_again(unique_validator, session, services, place):
    place("bob", 7)
    services.engine.execute_draw(session, winning_number=3)

    _check(unique_validator, session, chosen_number=7, bettor_id="alice")
