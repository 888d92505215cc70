"""Read-only views over the current round."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from charity_lottery.models.base import utcnow
from charity_lottery.repositories.bet_repository import BetRepository
from charity_lottery.utils.timestamps import isoformat_utc


def _epoch_ms(value: datetime | None) -> int:
    if value is None:
        return 0
    return int((value - datetime(1970, 1, 1)).total_seconds() * 1000)


class ActivityService:
    def __init__(self, draw_window: timedelta = timedelta(hours=24), repository: BetRepository | None = None) -> None:
        self._draw_window = draw_window
        self._repo = repository or BetRepository()

    def round_start(self, now: datetime | None = None) -> datetime:
        return (now or utcnow()) - self._draw_window

    def taken_numbers(self, session: Session) -> list[int]:
        return self._repo.taken_numbers(session, since=self.round_start())

    def latest_activity(self, session: Session) -> dict[str, Any]:
        """Timestamps clients compare to decide whether to refresh."""

        return {
            "lastBetTime": _epoch_ms(self._repo.latest_placed_at(session)),
            "lastDrawTime": _epoch_ms(self._repo.latest_settled_at(session)),
            "activePendingBets": self._repo.count_pending(session, since=self.round_start()),
        }

    def pending_summary(self, session: Session) -> dict[str, Any]:
        now = utcnow()
        pending = self._repo.list_pending(session)
        return {
            "recentPendingBets": self._repo.count_pending(session, since=self.round_start(now)),
            "allPendingBets": len(pending),
            "bets": [
                {
                    "id": b.id,
                    "bettorId": b.bettor_id,
                    "chosenNumber": int(b.chosen_number),
                    "placedAt": isoformat_utc(b.placed_at),
                    "ageSeconds": int((now - b.placed_at).total_seconds()),
                }
                for b in pending
            ],
        }
