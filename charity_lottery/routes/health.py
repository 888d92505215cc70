"""Health check routes."""

from __future__ import annotations

from flask import Blueprint
from sqlalchemy import text

from charity_lottery.db import get_session
from charity_lottery.extensions import lottery_services
from charity_lottery.utils.responses import ok

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health_check():
    """Health check endpoint; touches the database so a dead store reports 503."""

    get_session().execute(text("SELECT 1"))
    return ok({"status": "ok", "streamSubscribers": lottery_services().events.subscriber_count})
