"""Server-Sent Events channel over ``LotteryEvents``.

Each connection gets its own bounded queue. The broadcaster thread only ever
does a non-blocking put; the response generator drains the queue and always
unsubscribes when it stops. The heartbeat is an idle timer: it is written only
after ``heartbeat_seconds`` pass with no event, so a busy channel sends none.
"""

from __future__ import annotations

import itertools
import json
import logging
import queue
import threading
import time
from collections.abc import Iterator
from typing import Any

from charity_lottery.models.base import utcnow
from charity_lottery.services.lottery_events import LotteryEvent, LotteryEvents
from charity_lottery.utils.timestamps import isoformat_utc

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
}

_connection_ids = itertools.count(1)
_CLOSE = object()


def format_sse(label: str, data: Any) -> str:
    return f"event: {label}\ndata: {json.dumps(data)}\n\n"


def _server_clock() -> dict[str, Any]:
    return {"timestamp": isoformat_utc(utcnow()), "serverTime": int(time.time() * 1000)}


class ResultStream:
    """One client's view of the event feed."""

    def __init__(self, events: LotteryEvents, *, heartbeat_seconds: float = 30, queue_size: int = 256) -> None:
        self._events = events
        self._heartbeat_seconds = heartbeat_seconds
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._overflowed = threading.Event()
        self._closed = threading.Event()
        self._token: int | None = None
        self.connection_id = f"conn_{next(_connection_ids)}_{int(time.time() * 1000)}"

    @property
    def is_open(self) -> bool:
        return self._token is not None

    def _on_event(self, event: LotteryEvent) -> None:
        try:
            self._queue.put_nowait((event.label, event.to_payload()))
        except queue.Full:
            # Slow consumer: drop the channel instead of blocking the publisher.
            self._overflowed.set()
            self._detach()

    def _detach(self) -> None:
        token, self._token = self._token, None
        if token is not None:
            self._events.unsubscribe(token)

    def close(self) -> None:
        """Stop the generator at its next wake-up."""

        self._closed.set()
        try:
            self._queue.put_nowait(_CLOSE)
        except queue.Full:
            pass

    def messages(self) -> Iterator[str]:
        self._token = self._events.subscribe(self._on_event)
        logger.info("Stream %s opened (%s subscribers)", self.connection_id, self._events.subscriber_count)
        try:
            yield format_sse(
                "connected",
                {"message": "Connected to lottery events", "connectionId": self.connection_id, **_server_clock()},
            )
            while not self._closed.is_set():
                if self._overflowed.is_set():
                    logger.warning("Stream %s dropped: client not keeping up", self.connection_id)
                    break
                try:
                    item = self._queue.get(timeout=self._heartbeat_seconds)
                except queue.Empty:
                    yield format_sse("heartbeat", {"connectionId": self.connection_id, **_server_clock()})
                    continue
                if item is _CLOSE:
                    break
                label, payload = item
                yield format_sse(label, payload)
        finally:
            self._detach()
            logger.info("Stream %s closed", self.connection_id)

    def __iter__(self) -> Iterator[str]:
        return self.messages()
