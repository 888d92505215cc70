"""Per-application service wiring.

Every service that holds state (locks, subscriber registry) is created once
per Flask app and reached through ``current_app.extensions``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from flask import Flask, current_app

from charity_lottery.services.activity_service import ActivityService
from charity_lottery.services.beneficiary_service import BeneficiaryService
from charity_lottery.services.bettor_service import BettorService
from charity_lottery.services.game_rules import GameRules
from charity_lottery.services.ledger_service import BetLedger
from charity_lottery.services.lottery_events import LotteryEvents
from charity_lottery.services.results_service import ResultsService
from charity_lottery.services.settlement import DrawSettlementEngine, create_settlement_backend
from charity_lottery.services.ticket_status_service import TicketStatusService


@dataclass
class LotteryServices:
    rules: GameRules
    events: LotteryEvents
    ledger: BetLedger
    engine: DrawSettlementEngine
    status: TicketStatusService
    results: ResultsService
    activity: ActivityService
    bettors: BettorService
    beneficiaries: BeneficiaryService


def init_lottery(app: Flask, events: LotteryEvents | None = None) -> LotteryServices:
    rules = GameRules.from_config(app.config)
    events = events or LotteryEvents()

    services = LotteryServices(
        rules=rules,
        events=events,
        ledger=BetLedger(rules, events),
        engine=DrawSettlementEngine(rules, events, backend=create_settlement_backend(app.config)),
        status=TicketStatusService(
            completed_window=timedelta(seconds=int(app.config["STATUS_COMPLETED_WINDOW_SECONDS"])),
        ),
        results=ResultsService(),
        activity=ActivityService(draw_window=rules.draw_window),
        bettors=BettorService(),
        beneficiaries=BeneficiaryService(),
    )
    app.extensions["lottery"] = services
    app.extensions["lottery_events"] = events
    return services


def lottery_services() -> LotteryServices:
    return current_app.extensions["lottery"]
