from __future__ import annotations

import dataclasses
import threading

import pytest

from charity_lottery.errors import BeneficiaryNotFound, BettorNotFound, InvalidNumberRange, NumberAlreadyTaken, StakeTooLow
from charity_lottery.models.bet import Bet
from charity_lottery.models.beneficiary import Beneficiary
from charity_lottery.models.bettor import Bettor
from charity_lottery.repositories.bet_repository import NUMBER_CLAIM_LOCK_KEY, BetRepository
from charity_lottery.services.ledger_service import BetLedger
from charity_lottery.services.lottery_events import NewTicket
from tests.conftest import build_app


def test_place_bet_records_pending_entry_and_split(session, place):
    placed = place("Alice", 7, stake=100)

    bet = session.get(Bet, placed.bet_id)
    assert bet is not None
    assert bet.is_pending
    assert bet.bettor_id == "alice"
    assert bet.chosen_number == 7
    assert (bet.stake_amount, bet.beneficiary_share, bet.house_share, bet.pool_share) == (100, 15, 5, 80)
    assert placed.split.beneficiary_share == 15
    assert placed.split.pool_share == 80


def test_place_bet_returns_synthetic_receipt(place):
    placed = place("alice", 7)

    assert placed.tx_hash.startswith("0x")
    assert len(placed.tx_hash) == 66
    int(placed.tx_hash[2:], 16)
    assert 1_000_000 <= placed.block_number < 2_000_000


def test_place_bet_uses_default_stake(place):
    placed = place("alice", 7)

    assert placed.split.stake == 100


def test_place_bet_updates_bettor_and_beneficiary_totals(session, place):
    place("alice", 7, stake=100)
    place("alice", 8, stake=200)

    bettor = session.get(Bettor, "alice")
    assert bettor.total_wagered == 300
    assert bettor.total_contributed == 45
    assert bettor.participations == 2

    beneficiary = session.get(Beneficiary, "red-cross")
    session.refresh(beneficiary)
    assert beneficiary.total_funds_received == 45
    assert beneficiary.total_bets_supported == 2


def test_place_bet_publishes_new_ticket_after_commit(place, recorded):
    placed = place("alice", 42, beneficiary_id="unicef")

    assert len(recorded) == 1
    event = recorded[0]
    assert isinstance(event, NewTicket)
    assert event.ticket_id == placed.bet_id
    assert event.to_payload()["chosenNumber"] == 42
    assert event.to_payload()["beneficiaryId"] == "unicef"


@pytest.mark.parametrize(
    "number, beneficiary_id, stake, error",
    [
        (100, "red-cross", 100, InvalidNumberRange),
        (7, "closed", 100, BeneficiaryNotFound),
        (7, "red-cross", 0, StakeTooLow),
    ],
)
def test_rejected_bet_writes_nothing(session, place, recorded, number, beneficiary_id, stake, error):
    with pytest.raises(error):
        place("alice", number, beneficiary_id=beneficiary_id, stake=stake)

    assert session.query(Bet).count() == 0
    assert session.get(Bettor, "alice") is None
    assert recorded == []


def test_unregistered_bettor_rejected_when_registration_required(tmp_path):
    app = build_app(tmp_path, REQUIRE_REGISTERED_BETTOR=True)
    services = app.extensions["lottery"]
    session = app.extensions["session_factory"]()
    try:
        with pytest.raises(BettorNotFound):
            services.ledger.place_bet(session, bettor_id="ghost", chosen_number=1, beneficiary_id="red-cross")

        services.bettors.get_or_create(session, "Ghost")
        session.commit()
        placed = services.ledger.place_bet(session, bettor_id="ghost", chosen_number=1, beneficiary_id="red-cross")
        assert placed.bettor_id == "ghost"
    finally:
        session.close()
        app.extensions["engine"].dispose()


def test_concurrent_claims_on_same_number_admit_one(tmp_path):
    app = build_app(tmp_path, ENFORCE_UNIQUE_NUMBERS=True)
    services = app.extensions["lottery"]
    factory = app.extensions["session_factory"]
    outcomes: list[str] = []
    barrier = threading.Barrier(4)

    def claim(bettor: str) -> None:
        session = factory()
        try:
            barrier.wait()
            services.ledger.place_bet(session, bettor_id=bettor, chosen_number=13, beneficiary_id="red-cross")
            outcomes.append("ok")
        except NumberAlreadyTaken:
            outcomes.append("taken")
        finally:
            session.close()

    threads = [threading.Thread(target=claim, args=(f"bettor-{i}",)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sorted(outcomes) == ["ok", "taken", "taken", "taken"]
    app.extensions["engine"].dispose()


class _Dialect:
    def __init__(self, name: str) -> None:
        self.name = name


class _PostgresSession:
    def __init__(self) -> None:
        self.executed: list = []

    def get_bind(self):
        return type("Bind", (), {"dialect": _Dialect("postgresql")})()

    def execute(self, statement, params=None):
        self.executed.append((str(statement), params))


def test_number_claims_take_advisory_lock_on_postgres():
    fake = _PostgresSession()

    assert BetRepository().lock_number_claims(fake) is True
    assert fake.executed == [("SELECT pg_advisory_xact_lock(:key)", {"key": NUMBER_CLAIM_LOCK_KEY})]


def test_number_claim_lock_is_noop_on_sqlite(session):
    assert BetRepository().lock_number_claims(session) is False


def test_unique_numbers_take_claim_lock_before_validating(session, services):
    class CountingRepository(BetRepository):
        locks = 0

        def lock_number_claims(self, session):
            self.locks += 1
            return super().lock_number_claims(session)

    repo = CountingRepository()
    rules = dataclasses.replace(services.rules, enforce_unique_numbers=True)
    ledger = BetLedger(rules, services.events, bets=repo)

    ledger.place_bet(session, bettor_id="alice", chosen_number=7, beneficiary_id="red-cross")
    with pytest.raises(NumberAlreadyTaken):
        ledger.place_bet(session, bettor_id="bob", chosen_number=7, beneficiary_id="red-cross")

    assert repo.locks == 2
