"""Timestamp formatting for API payloads."""

from __future__ import annotations

from datetime import datetime, timezone


def isoformat_utc(value: datetime | None) -> str | None:
    """Render a naive-UTC datetime as ISO-8601 with a ``Z`` suffix."""

    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"
