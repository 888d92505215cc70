"""Beneficiary routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint

from charity_lottery.db import get_session
from charity_lottery.extensions import lottery_services
from charity_lottery.utils.responses import ok

beneficiaries_bp = Blueprint("beneficiaries", __name__)


@beneficiaries_bp.get("")
def list_beneficiaries():
    """Active beneficiaries with the funds they have received so far."""

    return ok(lottery_services().beneficiaries.list_active(get_session()))
