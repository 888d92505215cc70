"""Ticket status and draw history routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, request

from charity_lottery.db import get_session
from charity_lottery.extensions import lottery_services
from charity_lottery.schemas.lottery import ResultsQuerySchema, TicketStatusQuerySchema
from charity_lottery.utils.responses import ok

lottery_bp = Blueprint("lottery", __name__)

_status_schema = TicketStatusQuerySchema()
_results_schema = ResultsQuerySchema()


@lottery_bp.get("/check-user-ticket-status")
def check_user_ticket_status():
    """Authoritative status used by polling clients."""

    data = _status_schema.load(request.args)
    status = lottery_services().status.check(get_session(), data["bettor_id"])
    return ok({"status": status.status, "ticket": status.ticket, "hasPendingTickets": status.has_pending})


@lottery_bp.get("/results")
def results():
    data = _results_schema.load(request.args)
    page = lottery_services().results.list_results(
        get_session(),
        page=int(data["page"]),
        page_size=int(data["page_size"]),
        bettor_id=data.get("bettor_id"),
    )
    return ok(page)
