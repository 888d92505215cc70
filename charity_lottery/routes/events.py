"""Server-Sent Events route."""

from __future__ import annotations

from flask import Blueprint, Response, current_app

from charity_lottery.extensions import lottery_services
from charity_lottery.services.result_stream import SSE_HEADERS, ResultStream

events_bp = Blueprint("events", __name__)


@events_bp.get("/stream")
def stream():
    channel = ResultStream(
        lottery_services().events,
        heartbeat_seconds=float(current_app.config["HEARTBEAT_SECONDS"]),
        queue_size=int(current_app.config["STREAM_QUEUE_SIZE"]),
    )
    return Response(channel.messages(), mimetype="text/event-stream", headers=SSE_HEADERS)
