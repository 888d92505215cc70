"""Game routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, request

from charity_lottery.db import get_session
from charity_lottery.extensions import lottery_services
from charity_lottery.schemas.game import PlaceBetRequestSchema, PlacedBetSchema
from charity_lottery.utils.responses import ok

game_bp = Blueprint("game", __name__)

_request_schema = PlaceBetRequestSchema()
_response_schema = PlacedBetSchema()


@game_bp.post("/place-bet")
def place_bet():
    payload = request.get_json(silent=True) or {}
    data = _request_schema.load(payload)

    placed = lottery_services().ledger.place_bet(
        get_session(),
        bettor_id=data["bettor_id"],
        chosen_number=data["chosen_number"],
        beneficiary_id=data["beneficiary_id"],
        stake_amount=data.get("stake_amount"),
    )
    return ok(_response_schema.dump(placed), status_code=201)


@game_bp.get("/taken-numbers")
def taken_numbers():
    """Numbers held by pending bets in the current round."""

    numbers = lottery_services().activity.taken_numbers(get_session())
    return ok({"takenNumbers": numbers, "count": len(numbers)})


@game_bp.get("/latest-activity")
def latest_activity():
    return ok(lottery_services().activity.latest_activity(get_session()))
