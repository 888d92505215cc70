"""Game parameters and the stake split."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any


@dataclass(frozen=True)
class FundSplit:
    stake: int
    beneficiary_share: int
    house_share: int
    pool_share: int


@dataclass(frozen=True)
class GameRules:
    numbers_range: int = 99
    min_bet_amount: int = 10**18
    default_bet_amount: int = 10**18
    beneficiary_percent: int = 15
    house_percent: int = 5
    pool_percent: int = 80
    enforce_unique_numbers: bool = False
    require_registered_bettor: bool = False
    draw_window: timedelta = timedelta(hours=24)
    estimated_draw_duration_ms: int = 5000

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "GameRules":
        return cls(
            numbers_range=int(config["NUMBERS_RANGE"]),
            min_bet_amount=int(config["MIN_BET_AMOUNT"]),
            default_bet_amount=int(config["DEFAULT_BET_AMOUNT"]),
            beneficiary_percent=int(config["BENEFICIARY_PERCENT"]),
            house_percent=int(config["HOUSE_PERCENT"]),
            pool_percent=int(config["POOL_PERCENT"]),
            enforce_unique_numbers=bool(config["ENFORCE_UNIQUE_NUMBERS"]),
            require_registered_bettor=bool(config["REQUIRE_REGISTERED_BETTOR"]),
            draw_window=timedelta(hours=int(config["DRAW_WINDOW_HOURS"])),
            estimated_draw_duration_ms=int(config["DRAW_ESTIMATED_DURATION_MS"]),
        )

    def split_stake(self, stake: int) -> FundSplit:
        """Split a stake into beneficiary, house and pool shares.

        Beneficiary and house shares are floored; the pool takes the remainder
        so the three shares always add up to the stake.
        """

        stake = int(stake)
        beneficiary = stake * self.beneficiary_percent // 100
        house = stake * self.house_percent // 100
        return FundSplit(
            stake=stake,
            beneficiary_share=beneficiary,
            house_share=house,
            pool_share=stake - beneficiary - house,
        )
