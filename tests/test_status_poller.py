from __future__ import annotations

import threading

import pytest
import requests

from charity_lottery.client.status_poller import HttpTicketStatusSource, StatusPoller, StatusSourceError


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class ScriptedSource:
    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls = 0

    def __call__(self, bettor_id: str) -> dict:
        self.calls += 1
        result = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(result, Exception):
            raise result
        return result


PENDING = {"status": "pending", "ticket": {"id": "b1", "chosenNumber": 7}}
COMPLETED = {"status": "completed", "ticket": {"id": "b1", "winningNumber": 7, "isWinner": True}}
NONE = {"status": "no_pending_tickets", "ticket": None}


def test_interval_is_slow_without_pending_bet():
    poller = StatusPoller(ScriptedSource(NONE), "alice", clock=FakeClock())
    poller.poll_once()

    assert poller.next_interval() == 10.0


def test_interval_is_fast_while_bet_pending():
    poller = StatusPoller(ScriptedSource(PENDING), "alice", clock=FakeClock())
    poller.poll_once()

    assert poller.next_interval() == 3.0


def test_just_placed_bet_polls_fast_for_grace_period():
    clock = FakeClock()
    poller = StatusPoller(ScriptedSource(NONE), "alice", clock=clock, placed_grace_seconds=30)
    poller.poll_once()

    poller.mark_bet_placed()
    assert poller.next_interval() == 3.0

    clock.now += 31
    assert poller.next_interval() == 10.0


def test_on_change_fires_only_when_status_changes():
    changes: list = []
    source = ScriptedSource(PENDING, PENDING, COMPLETED, COMPLETED)
    poller = StatusPoller(source, "alice", on_change=lambda new, old: changes.append((old, new)))

    for _ in range(4):
        poller.poll_once()

    assert changes == [(None, PENDING), (PENDING, COMPLETED)]
    assert poller.status == "completed"


def test_run_survives_source_errors_and_stops():
    stop = threading.Event()
    source = ScriptedSource(requests.ConnectionError("down"), PENDING)
    seen: list = []

    def on_change(new, old):
        seen.append(new["status"])
        stop.set()

    poller = StatusPoller(source, "alice", fast_interval=0.01, slow_interval=0.01, on_change=on_change)
    worker = threading.Thread(target=poller.run, args=(stop,))
    worker.start()
    worker.join(timeout=2)

    assert not worker.is_alive()
    assert seen == ["pending"]
    assert source.calls >= 2


def test_nudge_wakes_poller_early():
    source = ScriptedSource(NONE)
    poller = StatusPoller(source, "alice", fast_interval=60, slow_interval=60)
    worker = threading.Thread(target=poller.run)
    worker.start()

    try:
        for _ in range(200):
            if source.calls >= 1:
                break
            threading.Event().wait(0.01)
        poller.nudge()
        for _ in range(200):
            if source.calls >= 2:
                break
            threading.Event().wait(0.01)
        assert source.calls >= 2
    finally:
        poller.stop()
        worker.join(timeout=2)

    assert not worker.is_alive()


class FakeResponse:
    def __init__(self, payload: dict, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> dict:
        return self._payload


class FakeHttp:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.requests: list = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        return self.response

    def close(self) -> None:
        pass


def test_http_source_reads_data_envelope():
    http = FakeHttp(FakeResponse({"success": True, "data": PENDING, "error": None}))
    source = HttpTicketStatusSource("http://lottery.local/", http=http, timeout_seconds=2)

    assert source("alice") == PENDING
    assert http.requests == [
        ("http://lottery.local/api/lottery/check-user-ticket-status", {"bettorId": "alice"}, 2)
    ]


def test_http_source_rejects_error_envelope():
    http = FakeHttp(FakeResponse({"success": False, "data": None, "error": {"code": "validation_error"}}))

    with pytest.raises(StatusSourceError):
        HttpTicketStatusSource("http://lottery.local", http=http)("alice")


def test_http_source_raises_on_http_error():
    http = FakeHttp(FakeResponse({}, status_code=503))

    with pytest.raises(requests.HTTPError):
        HttpTicketStatusSource("http://lottery.local", http=http)("alice")


def test_http_source_against_live_app(client, services, place):
    class TestClientHttp:
        def get(self, url, params=None, timeout=None):
            path = url.replace("http://testserver", "")
            resp = client.get(path, query_string=params)
            return FakeResponse(resp.get_json(), resp.status_code)

    source = HttpTicketStatusSource("http://testserver", http=TestClientHttp())
    place("alice", 7)

    assert source("alice")["status"] == "pending"
