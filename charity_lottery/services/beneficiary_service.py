"""Beneficiary listing."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from charity_lottery.repositories.beneficiary_repository import BeneficiaryRepository
from charity_lottery.utils.timestamps import isoformat_utc


class BeneficiaryService:
    def __init__(self, repository: BeneficiaryRepository | None = None) -> None:
        self._repo = repository or BeneficiaryRepository()

    def list_active(self, session: Session) -> list[dict[str, Any]]:
        return [
            {
                "id": b.id,
                "name": b.name,
                "description": b.description,
                "totalFundsReceived": str(b.total_funds_received),
                "totalBetsSupported": int(b.total_bets_supported),
                "createdAt": isoformat_utc(b.created_at),
            }
            for b in self._repo.list_active(session)
        ]
