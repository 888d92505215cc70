"""Schemas for bet placement and round queries."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from charity_lottery.schemas.fields import TokenAmountField
from charity_lottery.utils.timestamps import isoformat_utc


class PlaceBetRequestSchema(Schema):
    bettor_id = fields.String(required=True, data_key="bettorId", validate=validate.Length(min=1, max=128))

    # Range and type are checked by the bet validator so they map to invalid_number_range.
    chosen_number = fields.Raw(required=True, data_key="chosenNumber")

    beneficiary_id = fields.String(required=True, data_key="beneficiaryId", validate=validate.Length(min=1, max=64))
    stake_amount = TokenAmountField(required=False, load_default=None, allow_none=True, data_key="stakeAmount")


class PlacedBetSchema(Schema):
    bet_id = fields.String(data_key="betId")
    bettor_id = fields.String(data_key="bettorId")
    beneficiary_id = fields.String(data_key="beneficiaryId")
    chosen_number = fields.Integer(data_key="chosenNumber")
    stake_amount = TokenAmountField(attribute="split.stake", data_key="stakeAmount")
    beneficiary_share = TokenAmountField(attribute="split.beneficiary_share", data_key="beneficiaryShare")
    house_share = TokenAmountField(attribute="split.house_share", data_key="houseShare")
    pool_share = TokenAmountField(attribute="split.pool_share", data_key="poolShare")
    tx_hash = fields.String(data_key="txHash")
    block_number = fields.Integer(data_key="blockNumber")
    placed_at = fields.Function(lambda obj: isoformat_utc(obj.placed_at), data_key="placedAt")
