"""Schemas for ticket status, results and bettor queries."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

from charity_lottery.services.lottery_events import EVENT_LABELS


class TicketStatusQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    bettor_id = fields.String(required=True, data_key="bettorId", validate=validate.Length(min=1, max=128))


class ResultsQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    page = fields.Integer(required=False, load_default=0, validate=validate.Range(min=0))
    page_size = fields.Integer(required=False, load_default=10, data_key="pageSize", validate=validate.Range(min=1, max=50))
    bettor_id = fields.String(required=False, load_default=None, data_key="bettorId", validate=validate.Length(min=1, max=128))


class GetOrCreateBettorSchema(Schema):
    bettor_id = fields.String(required=True, data_key="bettorId", validate=validate.Length(min=1, max=128))


class SampleEventRequestSchema(Schema):
    event_type = fields.String(required=True, data_key="eventType", validate=validate.OneOf(EVENT_LABELS))
    draw_id = fields.String(required=False, load_default=None, data_key="drawId")
    winning_number = fields.Integer(required=False, load_default=None, allow_none=True, data_key="winningNumber")
