"""Bettor registration and statistics."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from charity_lottery.models.bettor import Bettor
from charity_lottery.repositories.bettor_repository import BettorRepository
from charity_lottery.services.ledger_service import normalize_bettor_id
from charity_lottery.utils.timestamps import isoformat_utc


def bettor_stats(bettor_id: str, bettor: Bettor | None) -> dict[str, Any]:
    if bettor is None:
        return {
            "bettorId": bettor_id,
            "totalWagered": "0",
            "totalWinnings": "0",
            "totalContributed": "0",
            "totalWins": 0,
            "participations": 0,
            "createdAt": None,
        }
    return {
        "bettorId": bettor.id,
        "totalWagered": str(bettor.total_wagered),
        "totalWinnings": str(bettor.total_winnings),
        "totalContributed": str(bettor.total_contributed),
        "totalWins": int(bettor.total_wins),
        "participations": int(bettor.participations),
        "createdAt": isoformat_utc(bettor.created_at),
    }


class BettorService:
    def __init__(self, repository: BettorRepository | None = None) -> None:
        self._repo = repository or BettorRepository()

    def get_or_create(self, session: Session, bettor_id: str) -> tuple[dict[str, Any], bool]:
        bettor, created = self._repo.get_or_create(session, normalize_bettor_id(bettor_id))
        return bettor_stats(bettor.id, bettor), created

    def stats(self, session: Session, bettor_id: str) -> dict[str, Any]:
        """Cumulative counters; an unknown bettor reads as all zeros."""

        bettor_id = normalize_bettor_id(bettor_id)
        return bettor_stats(bettor_id, self._repo.get_by_id(session, bettor_id))
