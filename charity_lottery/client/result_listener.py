"""Client for the live result stream.

Reads ``/api/events/stream`` and turns each frame into ``(label, data)``.
Result events only nudge the status poller so it asks the server sooner; the
poller's own status query stays authoritative.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Protocol

import requests

from charity_lottery.client.status_poller import build_http_session

logger = logging.getLogger(__name__)

STREAM_PATH = "/api/events/stream"
NUDGE_LABELS = frozenset({"draw-completed", "ticket-result"})

EventCallback = Callable[[str, Any], None]


class Nudgeable(Protocol):
    def nudge(self) -> None: ...


def iter_sse(lines: Iterable[str]) -> Iterator[tuple[str, Any]]:
    """Group ``event:``/``data:`` lines into frames ended by a blank line."""

    label = "message"
    data: list[str] = []
    for raw in lines:
        line = raw.rstrip("\r")
        if not line:
            if data:
                text = "\n".join(data)
                try:
                    yield label, json.loads(text)
                except ValueError:
                    logger.warning("Skipping %s frame with bad JSON: %r", label, text)
            label, data = "message", []
            continue
        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if field == "event":
            label = value
        elif field == "data":
            data.append(value)


class ResultStreamListener:
    def __init__(
        self,
        base_url: str,
        poller: Nudgeable | None = None,
        *,
        http: requests.Session | None = None,
        reconnect_delay: float = 3.0,
        max_reconnects: int = 5,
        connect_timeout: float = 10.0,
        read_timeout: float = 90.0,
        on_event: EventCallback | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + STREAM_PATH
        self._poller = poller
        self._http = http or build_http_session()
        self._reconnect_delay = reconnect_delay
        self._max_reconnects = max_reconnects
        self._timeout = (connect_timeout, read_timeout)
        self._on_event = on_event
        self._stop = threading.Event()
        self.connections = 0

    def handle(self, label: str, data: Any) -> None:
        if self._on_event is not None:
            self._on_event(label, data)
        if self._poller is None:
            return
        # Events may have been missed while disconnected.
        if label in NUDGE_LABELS or (label == "connected" and self.connections > 1):
            self._poller.nudge()

    def listen_once(self, stop: threading.Event | None = None) -> int:
        """Read one connection until it ends or ``stop`` is set; return frames seen."""

        stop = stop or self._stop
        resp = self._http.get(
            self._url,
            headers={"Accept": "text/event-stream"},
            stream=True,
            timeout=self._timeout,
        )
        frames = 0
        try:
            resp.raise_for_status()
            self.connections += 1
            for label, data in iter_sse(resp.iter_lines(decode_unicode=True)):
                frames += 1
                self.handle(label, data)
                if stop.is_set():
                    break
        finally:
            resp.close()
        return frames

    def stop(self) -> None:
        """Takes effect at the next frame; heartbeats bound the wait."""

        self._stop.set()

    def run(self, stop_event: threading.Event | None = None) -> None:
        stop = stop_event or self._stop
        failures = 0
        while not stop.is_set():
            try:
                if self.listen_once(stop):
                    failures = 0
            except requests.RequestException:
                failures += 1
                logger.warning("Result stream connection failed (%s/%s)", failures, self._max_reconnects, exc_info=True)
                if failures > self._max_reconnects:
                    logger.error("Giving up on result stream %s", self._url)
                    return

            if stop.wait(self._reconnect_delay):
                return

    def close(self) -> None:
        self._http.close()
