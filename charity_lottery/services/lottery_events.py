"""In-process publish point for draw and ticket lifecycle events.

One ``LotteryEvents`` instance is created per application and handed to the
ledger, the settlement engine and the stream gateway. Delivery is synchronous
and in publish order. Nothing is queued or persisted: an event published with
no subscribers is dropped, clients reconcile through the ticket status query.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any, ClassVar, Union

from charity_lottery.models.base import utcnow
from charity_lottery.utils.timestamps import isoformat_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawStarted:
    label: ClassVar[str] = "draw-started"

    draw_id: str
    estimated_duration: int
    participant_count: int
    timestamp: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict[str, Any]:
        return {
            "drawId": self.draw_id,
            "startTime": isoformat_utc(self.timestamp),
            "estimatedDuration": self.estimated_duration,
            "participantCount": self.participant_count,
            "timestamp": isoformat_utc(self.timestamp),
        }


@dataclass(frozen=True)
class NumbersDrawn:
    label: ClassVar[str] = "numbers-drawn"

    draw_id: str
    winning_number: int
    timestamp: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict[str, Any]:
        return {
            "drawId": self.draw_id,
            "winningNumber": self.winning_number,
            "timestamp": isoformat_utc(self.timestamp),
        }


@dataclass(frozen=True)
class TicketResult:
    label: ClassVar[str] = "ticket-result"

    ticket_id: str
    bettor_id: str
    chosen_number: int
    winning_number: int
    is_winner: bool
    prize_amount: int | None
    draw_id: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict[str, Any]:
        return {
            "ticketId": self.ticket_id,
            "bettorId": self.bettor_id,
            "chosenNumber": self.chosen_number,
            "winningNumber": self.winning_number,
            "isWinner": self.is_winner,
            "prizeAmount": str(self.prize_amount) if self.prize_amount is not None else None,
            "drawId": self.draw_id,
            "timestamp": isoformat_utc(self.timestamp),
        }


@dataclass(frozen=True)
class DrawCompleted:
    label: ClassVar[str] = "draw-completed"

    draw_id: str
    winning_number: int
    winner_count: int
    participant_count: int
    total_pool: int
    timestamp: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict[str, Any]:
        return {
            "drawId": self.draw_id,
            "winningNumber": self.winning_number,
            "totalWinners": self.winner_count,
            "totalParticipants": self.participant_count,
            "totalPool": str(self.total_pool),
            "completedAt": isoformat_utc(self.timestamp),
            "timestamp": isoformat_utc(self.timestamp),
        }


@dataclass(frozen=True)
class NewTicket:
    label: ClassVar[str] = "new-ticket"

    ticket_id: str
    bettor_id: str
    chosen_number: int
    beneficiary_id: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict[str, Any]:
        return {
            "ticketId": self.ticket_id,
            "bettorId": self.bettor_id,
            "chosenNumber": self.chosen_number,
            "beneficiaryId": self.beneficiary_id,
            "timestamp": isoformat_utc(self.timestamp),
        }


LotteryEvent = Union[DrawStarted, NumbersDrawn, TicketResult, DrawCompleted, NewTicket]
EVENT_TYPES: tuple[type, ...] = (DrawStarted, NumbersDrawn, TicketResult, DrawCompleted, NewTicket)
EVENT_LABELS: tuple[str, ...] = tuple(t.label for t in EVENT_TYPES)

EventHandler = Callable[[LotteryEvent], None]


class LotteryEvents:
    """Subscriber registry with synchronous fan-out."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._ids = itertools.count(1)
        self._subscribers: dict[int, EventHandler] = {}

    def subscribe(self, handler: EventHandler) -> int:
        """Register ``handler`` for every event kind; returns the token for ``unsubscribe``."""

        with self._lock:
            token = next(self._ids)
            self._subscribers[token] = handler
            count = len(self._subscribers)
        logger.debug("Subscriber %s added (%s total)", token, count)
        return token

    def unsubscribe(self, token: int) -> bool:
        with self._lock:
            removed = self._subscribers.pop(token, None) is not None
            count = len(self._subscribers)
        if removed:
            logger.debug("Subscriber %s removed (%s remaining)", token, count)
        return removed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: LotteryEvent) -> int:
        """Deliver ``event`` to every current subscriber.

        Returns the number of subscribers that received it. A failing handler
        is logged and skipped; the remaining handlers still run.
        """

        if not isinstance(event, EVENT_TYPES):
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        with self._lock:
            handlers = list(self._subscribers.items())

        if not handlers:
            logger.debug("Dropping %s event, no subscribers", event.label)
            return 0

        delivered = 0
        for token, handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception("Subscriber %s failed on %s event", token, event.label)
        return delivered


def sample_event(label: str, *, draw_id: str | None = None, winning_number: int | None = None) -> LotteryEvent:
    """Build a placeholder event of the given kind for manual stream checks."""

    draw_id = draw_id or f"test_{int(time.time() * 1000)}"
    number = 0 if winning_number is None else int(winning_number)

    if label == DrawStarted.label:
        return DrawStarted(draw_id=draw_id, estimated_duration=1000, participant_count=0)
    if label == NumbersDrawn.label:
        return NumbersDrawn(draw_id=draw_id, winning_number=number)
    if label == TicketResult.label:
        return TicketResult(
            ticket_id="test_ticket",
            bettor_id="test_bettor",
            chosen_number=number,
            winning_number=number,
            is_winner=True,
            prize_amount=0,
            draw_id=draw_id,
        )
    if label == DrawCompleted.label:
        return DrawCompleted(draw_id=draw_id, winning_number=number, winner_count=0, participant_count=0, total_pool=0)
    if label == NewTicket.label:
        return NewTicket(ticket_id="test_ticket", bettor_id="test_bettor", chosen_number=number, beneficiary_id="test")
    raise ValueError(f"Unknown event type: {label}")
