"""Custom marshmallow fields."""

from __future__ import annotations

import re
from typing import Any

from marshmallow import fields

_INTEGER = re.compile(r"-?\d+")


class TokenAmountField(fields.Field):
    """Integer amount in the smallest unit, written as a decimal string.

    Accepts a JSON integer or a string of digits on load.
    """

    default_error_messages = {"invalid": "Not a valid token amount."}

    def _serialize(self, value: Any, attr: str | None, obj: Any, **kwargs: Any) -> str | None:
        if value is None:
            return None
        return str(int(value))

    def _deserialize(self, value: Any, attr: str | None, data: Any, **kwargs: Any) -> int:
        if isinstance(value, bool):
            raise self.make_error("invalid")
        if isinstance(value, int):
            return value
        if isinstance(value, str) and _INTEGER.fullmatch(value.strip()):
            return int(value.strip())
        raise self.make_error("invalid")
