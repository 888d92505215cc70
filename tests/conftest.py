from __future__ import annotations

from collections.abc import Iterator

import pytest
from flask import Flask
from sqlalchemy.orm import Session

from charity_lottery import create_app
from charity_lottery.extensions import LotteryServices
from charity_lottery.repositories.beneficiary_repository import BeneficiaryRepository
from charity_lottery.services.lottery_events import LotteryEvents


BASE_OVERRIDES = {
    "APP_ENV": "testing",
    "TESTING": True,
    "LOG_LEVEL": "WARNING",
    "NUMBERS_RANGE": 99,
    "MIN_BET_AMOUNT": 1,
    "DEFAULT_BET_AMOUNT": 100,
    "BENEFICIARY_PERCENT": 15,
    "HOUSE_PERCENT": 5,
    "POOL_PERCENT": 80,
    "ENFORCE_UNIQUE_NUMBERS": False,
    "REQUIRE_REGISTERED_BETTOR": False,
    "DRAW_WINDOW_HOURS": 24,
    "SETTLEMENT_BACKEND": "mock",
    "HEARTBEAT_SECONDS": 1,
    "STREAM_QUEUE_SIZE": 16,
    "ADMIN_KEY": "test-admin-key",
}


def build_app(tmp_path, **overrides) -> Flask:
    config = dict(BASE_OVERRIDES)
    config["DATABASE_URL"] = f"sqlite:///{tmp_path / 'lottery.db'}"
    config.update(overrides)
    app = create_app(config, events=LotteryEvents())

    with Session(app.extensions["engine"]) as session:
        repo = BeneficiaryRepository()
        repo.create(session, "red-cross", "Red Cross", "Emergency relief")
        repo.create(session, "unicef", "UNICEF")
        repo.create(session, "closed", "Closed Cause", is_active=False)
        session.commit()
    return app


@pytest.fixture()
def app(tmp_path) -> Iterator[Flask]:
    app = build_app(tmp_path)
    yield app
    app.extensions["engine"].dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def services(app) -> LotteryServices:
    return app.extensions["lottery"]


@pytest.fixture()
def session(app) -> Iterator[Session]:
    session = app.extensions["session_factory"]()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def recorded(services) -> list:
    """Every event published during the test, in order."""

    events: list = []
    services.events.subscribe(events.append)
    return events


@pytest.fixture()
def place(services, session):
    def _place(bettor_id: str, number: int, *, beneficiary_id: str = "red-cross", stake: int | None = None):
        return services.ledger.place_bet(
            session,
            bettor_id=bettor_id,
            chosen_number=number,
            beneficiary_id=beneficiary_id,
            stake_amount=stake,
        )

    return _place
