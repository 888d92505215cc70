"""Bettor routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, request

from charity_lottery.db import get_session
from charity_lottery.extensions import lottery_services
from charity_lottery.schemas.lottery import GetOrCreateBettorSchema
from charity_lottery.utils.responses import ok

users_bp = Blueprint("users", __name__)

_get_or_create_schema = GetOrCreateBettorSchema()


@users_bp.post("/get-or-create")
def get_or_create():
    payload = request.get_json(silent=True) or {}
    data = _get_or_create_schema.load(payload)

    stats, created = lottery_services().bettors.get_or_create(get_session(), data["bettor_id"])
    return ok({"bettor": stats, "isNew": created}, status_code=201 if created else 200)


@users_bp.get("/<string:bettor_id>/stats")
def bettor_stats(bettor_id: str):
    return ok(lottery_services().bettors.stats(get_session(), bettor_id))
