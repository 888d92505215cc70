"""Admin routes (controllers). No business logic here.

Development builds expose the draw and debugging endpoints freely; in
production they need the ``X-Admin-Key`` header to match ``ADMIN_KEY``.
"""

from __future__ import annotations

import hmac

from flask import Blueprint, current_app, request

from charity_lottery.db import get_session
from charity_lottery.errors import ForbiddenError, UnauthorizedError
from charity_lottery.extensions import lottery_services
from charity_lottery.schemas.draw import DrawResultSchema, ExecuteDrawRequestSchema
from charity_lottery.schemas.lottery import SampleEventRequestSchema
from charity_lottery.services.lottery_events import sample_event
from charity_lottery.utils.responses import ok

admin_bp = Blueprint("admin", __name__)

_draw_request_schema = ExecuteDrawRequestSchema()
_draw_result_schema = DrawResultSchema()
_sample_event_schema = SampleEventRequestSchema()


def _is_production() -> bool:
    return str(current_app.config.get("APP_ENV", "")).lower() == "production"


def _has_admin_key() -> bool:
    expected = current_app.config.get("ADMIN_KEY")
    supplied = request.headers.get("X-Admin-Key", "")
    if not expected or not supplied:
        return False
    return hmac.compare_digest(str(expected).encode(), supplied.encode())


def _require_admin_key() -> None:
    if not _has_admin_key():
        raise UnauthorizedError("A valid admin key is required")


def _require_dev_or_admin() -> None:
    if _is_production() and not _has_admin_key():
        raise ForbiddenError("Only available in development or with an admin key")


@admin_bp.post("/execute-draw")
def execute_draw():
    _require_dev_or_admin()

    payload = request.get_json(silent=True) or {}
    data = _draw_request_schema.load(payload)

    result = lottery_services().engine.execute_draw(
        get_session(),
        winning_number=data.get("winning_number"),
        restrict_to_recent=bool(data["restrict_to_recent"]),
    )
    return ok(_draw_result_schema.dump(result))


@admin_bp.post("/execute-production-draw")
def execute_production_draw():
    """Draw over the recent window; refuses to settle an empty round."""

    _require_admin_key()

    payload = request.get_json(silent=True) or {}
    data = _draw_request_schema.load(payload)

    result = lottery_services().engine.execute_draw(
        get_session(),
        winning_number=data.get("winning_number"),
        restrict_to_recent=True,
        require_participants=True,
    )
    return ok(_draw_result_schema.dump(result))


@admin_bp.get("/check-pending")
def check_pending():
    _require_dev_or_admin()
    return ok(lottery_services().activity.pending_summary(get_session()))


@admin_bp.post("/test-events")
def test_events():
    if _is_production():
        raise ForbiddenError("Only available in development")

    payload = request.get_json(silent=True) or {}
    data = _sample_event_schema.load(payload)

    event = sample_event(data["event_type"], draw_id=data.get("draw_id"), winning_number=data.get("winning_number"))
    events = lottery_services().events
    delivered = events.publish(event)
    return ok({"eventType": event.label, "payload": event.to_payload(), "delivered": delivered})
