"""ORM models."""

from charity_lottery.models.beneficiary import Beneficiary
from charity_lottery.models.bet import Bet
from charity_lottery.models.bettor import Bettor

__all__ = ["Beneficiary", "Bet", "Bettor"]
