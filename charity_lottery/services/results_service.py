"""Settled draw history, newest first."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any

from sqlalchemy.orm import Session

from charity_lottery.models.bet import Bet
from charity_lottery.repositories.bet_repository import BetRepository
from charity_lottery.services.ledger_service import normalize_bettor_id
from charity_lottery.utils.timestamps import isoformat_utc


class ResultsService:
    """Rebuilds draws from the bets that share a ``draw_id``."""

    def __init__(self, repository: BetRepository | None = None) -> None:
        self._repo = repository or BetRepository()

    def list_results(
        self,
        session: Session,
        *,
        page: int = 0,
        page_size: int = 10,
        bettor_id: str | None = None,
    ) -> dict[str, Any]:
        offset = page * page_size
        total = self._repo.count_draws(session)

        # One extra id tells us whether another page exists.
        draw_ids = self._repo.list_draw_ids(session, offset=offset, limit=page_size + 1)
        has_more = len(draw_ids) > page_size
        draw_ids = draw_ids[:page_size]

        grouped: OrderedDict[str, list[Bet]] = OrderedDict((draw_id, []) for draw_id in draw_ids)
        for bet in self._repo.list_by_draw_ids(session, draw_ids):
            grouped[str(bet.draw_id)].append(bet)

        bettor = normalize_bettor_id(bettor_id) if bettor_id else None
        results = [
            self._draw_payload(draw_id, bets, draw_number=total - offset - index, bettor_id=bettor)
            for index, (draw_id, bets) in enumerate(grouped.items())
        ]
        return {"results": results, "hasMore": has_more, "page": page, "pageSize": page_size, "totalDraws": total}

    @staticmethod
    def _draw_payload(draw_id: str, bets: list[Bet], *, draw_number: int, bettor_id: str | None) -> dict[str, Any]:
        first = bets[0]
        winning_number = int(first.winning_number)
        settled_at = max(b.settled_at for b in bets)

        winners = [
            {
                "bettorId": b.bettor_id,
                "betId": b.id,
                "prize": str(b.prize_amount or 0),
                "numbersMatched": 1,
                "betAmount": str(b.stake_amount),
            }
            for b in bets
            if b.is_winner
        ]

        beneficiaries: OrderedDict[str, dict[str, Any]] = OrderedDict()
        for b in bets:
            entry = beneficiaries.setdefault(
                b.beneficiary_id,
                {"id": b.beneficiary_id, "name": b.beneficiary.name if b.beneficiary else None, "fundsReceived": 0},
            )
            entry["fundsReceived"] += int(b.beneficiary_share)
        for entry in beneficiaries.values():
            entry["fundsReceived"] = str(entry["fundsReceived"])

        participation = None
        if bettor_id:
            own = [b for b in bets if b.bettor_id == bettor_id]
            if own:
                won = [b for b in own if b.is_winner]
                participation = {
                    "participated": True,
                    "chosenNumbers": [int(b.chosen_number) for b in own],
                    "numbersMatched": 1 if won else 0,
                    "betAmount": str(sum(int(b.stake_amount) for b in own)),
                    "won": bool(won),
                    "prizeWon": str(sum(int(b.prize_amount or 0) for b in won)),
                }

        return {
            "drawId": draw_id,
            "drawNumber": draw_number,
            "drawDate": isoformat_utc(settled_at),
            "winningNumber": winning_number,
            "totalBets": len(bets),
            "totalPrizePool": str(sum(int(b.pool_share) for b in bets)),
            "winners": winners,
            "beneficiaries": list(beneficiaries.values()),
            "userParticipation": participation,
        }
