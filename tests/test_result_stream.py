from __future__ import annotations

import json
import threading

from charity_lottery.services.lottery_events import DrawCompleted, DrawStarted, LotteryEvents, NumbersDrawn
from charity_lottery.services.result_stream import ResultStream, format_sse


def _parse(message: str) -> tuple[str, dict]:
    lines = message.strip().split("\n")
    assert lines[0].startswith("event: ")
    assert lines[1].startswith("data: ")
    return lines[0][len("event: "):], json.loads(lines[1][len("data: "):])


def test_format_sse_frames_label_and_json():
    assert format_sse("numbers-drawn", {"winningNumber": 7}) == 'event: numbers-drawn\ndata: {"winningNumber": 7}\n\n'


def test_first_message_is_connected_and_subscribes():
    events = LotteryEvents()
    stream = ResultStream(events, heartbeat_seconds=5)
    messages = stream.messages()

    label, payload = _parse(next(messages))

    assert label == "connected"
    assert payload["connectionId"] == stream.connection_id
    assert events.subscriber_count == 1
    messages.close()


def test_events_are_relayed_in_publish_order():
    events = LotteryEvents()
    messages = ResultStream(events, heartbeat_seconds=5).messages()
    next(messages)

    events.publish(DrawStarted(draw_id="d1", estimated_duration=5000, participant_count=1))
    events.publish(NumbersDrawn(draw_id="d1", winning_number=7))
    events.publish(DrawCompleted(draw_id="d1", winning_number=7, winner_count=1, participant_count=1, total_pool=80))

    labels = [_parse(next(messages))[0] for _ in range(3)]
    assert labels == ["draw-started", "numbers-drawn", "draw-completed"]
    messages.close()


def test_heartbeat_after_quiet_period():
    events = LotteryEvents()
    messages = ResultStream(events, heartbeat_seconds=0.05).messages()
    next(messages)

    label, payload = _parse(next(messages))

    assert label == "heartbeat"
    assert "serverTime" in payload
    messages.close()


def test_closing_generator_unsubscribes():
    events = LotteryEvents()
    messages = ResultStream(events, heartbeat_seconds=5).messages()
    next(messages)

    messages.close()

    assert events.subscriber_count == 0


def test_close_stops_a_waiting_stream():
    events = LotteryEvents()
    stream = ResultStream(events, heartbeat_seconds=5)
    messages = stream.messages()
    next(messages)
    collected: list[str] = []

    reader = threading.Thread(target=lambda: collected.extend(messages))
    reader.start()
    stream.close()
    reader.join(timeout=2)

    assert not reader.is_alive()
    assert collected == []
    assert events.subscriber_count == 0


def test_channels_are_independent_and_only_see_future_events():
    events = LotteryEvents()
    early = ResultStream(events, heartbeat_seconds=5).messages()
    next(early)
    events.publish(NumbersDrawn(draw_id="d1", winning_number=1))

    late = ResultStream(events, heartbeat_seconds=5).messages()
    next(late)
    events.publish(NumbersDrawn(draw_id="d2", winning_number=2))

    assert _parse(next(early))[1]["drawId"] == "d1"
    assert _parse(next(early))[1]["drawId"] == "d2"
    assert _parse(next(late))[1]["drawId"] == "d2"
    early.close()
    late.close()


def test_slow_consumer_is_disconnected():
    events = LotteryEvents()
    stream = ResultStream(events, heartbeat_seconds=5, queue_size=2)
    messages = stream.messages()
    next(messages)

    for n in range(3):
        events.publish(NumbersDrawn(draw_id=f"d{n}", winning_number=n))

    assert events.subscriber_count == 0
    assert list(messages) == []


def test_draw_relays_lifecycle_in_order(services, session, place):
    place("alice", 7)
    place("bob", 8)
    messages = ResultStream(services.events, heartbeat_seconds=5).messages()
    next(messages)

    result = services.engine.execute_draw(session, winning_number=7)

    frames = [_parse(next(messages)) for _ in range(4)]
    assert [label for label, _ in frames] == ["draw-started", "numbers-drawn", "ticket-result", "draw-completed"]
    assert {payload["drawId"] for _, payload in frames} == {result.draw_id}
    messages.close()


def test_busy_channel_sends_no_heartbeat():
    events = LotteryEvents()
    messages = ResultStream(events, heartbeat_seconds=0.2).messages()
    next(messages)

    labels = []
    for n in range(3):
        events.publish(NumbersDrawn(draw_id=f"d{n}", winning_number=n))
        labels.append(_parse(next(messages))[0])

    assert labels == ["numbers-drawn"] * 3
    messages.close()
