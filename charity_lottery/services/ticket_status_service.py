"""Authoritative per-bettor ticket status.

Push events may be missed; this query is what clients reconcile against.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from charity_lottery.models.base import utcnow
from charity_lottery.repositories.bet_repository import BetRepository
from charity_lottery.services.ledger_service import normalize_bettor_id
from charity_lottery.utils.timestamps import isoformat_utc

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_NONE = "no_pending_tickets"


@dataclass(frozen=True)
class TicketStatus:
    status: str
    ticket: dict[str, Any] | None = None

    @property
    def has_pending(self) -> bool:
        return self.status == STATUS_PENDING


class TicketStatusService:
    def __init__(
        self,
        completed_window: timedelta = timedelta(minutes=5),
        repository: BetRepository | None = None,
    ) -> None:
        self._completed_window = completed_window
        self._repo = repository or BetRepository()

    def check(self, session: Session, bettor_id: str, now: datetime | None = None) -> TicketStatus:
        """Return pending, completed or no_pending_tickets for ``bettor_id``.

        Any unsettled bet wins over a recent settlement, however old it is;
        a settlement only counts within the completed window.
        """

        bettor_id = normalize_bettor_id(bettor_id)
        now = now or utcnow()

        pending = self._repo.latest_pending_for_bettor(session, bettor_id)
        if pending is not None:
            return TicketStatus(
                status=STATUS_PENDING,
                ticket={
                    "id": pending.id,
                    "chosenNumber": int(pending.chosen_number),
                    "placedAt": isoformat_utc(pending.placed_at),
                    "isPending": True,
                },
            )

        settled = self._repo.latest_settled_for_bettor(session, bettor_id, since=now - self._completed_window)
        if settled is not None:
            return TicketStatus(
                status=STATUS_COMPLETED,
                ticket={
                    "id": settled.id,
                    "chosenNumber": int(settled.chosen_number),
                    "winningNumber": int(settled.winning_number),
                    "isWinner": bool(settled.is_winner),
                    "prizeAmount": str(settled.prize_amount) if settled.prize_amount is not None else None,
                    "drawId": settled.draw_id,
                    "settledAt": isoformat_utc(settled.settled_at),
                    "isPending": False,
                },
            )

        return TicketStatus(status=STATUS_NONE)
