"""Polling fallback for ticket status.

The ticket status endpoint is the source of truth. The poller asks it on an
adaptive interval: fast while a bet is pending or was just placed, slow
otherwise. Push events only call ``nudge()`` so the next poll happens right
away; they never change the poller's state themselves.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

STATUS_PATH = "/api/lottery/check-user-ticket-status"

StatusSource = Callable[[str], dict[str, Any]]
ChangeCallback = Callable[[dict[str, Any], "dict[str, Any] | None"], None]


class StatusSourceError(RuntimeError):
    """The status endpoint answered, but not with a usable status."""


def build_http_session(retries: int = 3, backoff_factor: float = 0.5) -> requests.Session:
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)

    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class HttpTicketStatusSource:
    """Fetches ``{"status": ..., "ticket": ...}`` from a running server."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        http: requests.Session | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + STATUS_PATH
        self._timeout = timeout_seconds
        self._http = http or build_http_session()

    def __call__(self, bettor_id: str) -> dict[str, Any]:
        resp = self._http.get(self._url, params={"bettorId": bettor_id}, timeout=self._timeout)
        resp.raise_for_status()
        payload: dict[str, Any] = resp.json()

        data = payload.get("data")
        if not payload.get("success") or not isinstance(data, dict) or "status" not in data:
            raise StatusSourceError(f"Unexpected status payload: {payload!r}")
        return data

    def close(self) -> None:
        self._http.close()


class StatusPoller:
    def __init__(
        self,
        source: StatusSource,
        bettor_id: str,
        *,
        fast_interval: float = 3.0,
        slow_interval: float = 10.0,
        placed_grace_seconds: float = 30.0,
        on_change: ChangeCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._bettor_id = bettor_id
        self._fast = fast_interval
        self._slow = slow_interval
        self._grace = placed_grace_seconds
        self._on_change = on_change
        self._clock = clock

        self._wake = threading.Event()
        self._stop = threading.Event()
        self._fast_until = 0.0
        self.last: dict[str, Any] | None = None

    @property
    def status(self) -> str | None:
        return self.last["status"] if self.last else None

    def mark_bet_placed(self) -> None:
        """Poll fast for a while even before the server reports the bet."""

        self._fast_until = self._clock() + self._grace
        self.nudge()

    def nudge(self) -> None:
        self._wake.set()

    def next_interval(self) -> float:
        if self.status == "pending" or self._clock() < self._fast_until:
            return self._fast
        return self._slow

    def poll_once(self) -> dict[str, Any]:
        result = self._source(self._bettor_id)
        previous = self.last
        self.last = result

        if previous is None or _fingerprint(previous) != _fingerprint(result):
            logger.debug("Ticket status for %s: %s", self._bettor_id, result.get("status"))
            if self._on_change is not None:
                self._on_change(result, previous)
        return result

    def stop(self) -> None:
        self._stop.set()
        self._wake.set()

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Poll until ``stop_event`` (or ``stop()``) is set."""

        stop = stop_event or self._stop
        while not (stop.is_set() or self._stop.is_set()):
            try:
                self.poll_once()
            except (requests.RequestException, StatusSourceError, ValueError):
                logger.warning("Ticket status poll failed for %s", self._bettor_id, exc_info=True)

            self._wake.wait(timeout=self.next_interval())
            self._wake.clear()


def _fingerprint(result: dict[str, Any]) -> tuple[Any, ...]:
    ticket = result.get("ticket") or {}
    return (result.get("status"), ticket.get("id"), ticket.get("winningNumber"))
