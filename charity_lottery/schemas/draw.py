"""Schemas for the admin draw API."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, post_load

from charity_lottery.schemas.fields import TokenAmountField
from charity_lottery.utils.timestamps import isoformat_utc


class ExecuteDrawRequestSchema(Schema):
    # Checked against the game range by the settlement engine.
    winning_number = fields.Raw(required=False, load_default=None, allow_none=True, data_key="winningNumber")

    restrict_to_recent = fields.Boolean(required=False, load_default=False, data_key="restrictToRecent")

    @post_load
    def _unwrap_number(self, data, **kwargs):  # type: ignore[no-untyped-def]
        # Older clients send the number as a one-element list.
        value = data.get("winning_number")
        if isinstance(value, list):
            if len(value) != 1:
                raise ValidationError({"winningNumber": ["Exactly one winning number is drawn"]})
            data["winning_number"] = value[0]
        return data


class WinnerSchema(Schema):
    bettor_id = fields.String(data_key="bettorId")
    bet_id = fields.String(data_key="betId")
    prize_amount = TokenAmountField(data_key="prizeAmount")
    matched = fields.Integer()


class DrawResultSchema(Schema):
    draw_id = fields.String(data_key="drawId")
    winning_number = fields.Integer(data_key="winningNumber")
    winners = fields.List(fields.Nested(WinnerSchema))
    tx_hash = fields.String(data_key="txHash")
    total_pool = TokenAmountField(data_key="totalPool")
    participant_count = fields.Integer(data_key="participantCount")

    # Left over from integer division of the pool; kept by the house.
    undistributed_remainder = TokenAmountField(data_key="undistributedRemainder")

    settled_at = fields.Function(lambda obj: isoformat_utc(obj.settled_at), data_key="settledAt")
