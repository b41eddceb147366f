"""Schemas for API requests and responses."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

DIRECTIONS = ("JPY_TO_USD", "USD_TO_JPY")
CURRENCIES = ("JPY", "USD")


class HealthStatusSchema(Schema):
    status = fields.String(required=True)
    app = fields.String()


class HealthRatesSchema(Schema):
    status = fields.String(required=True)
    direction = fields.String(allow_none=True)
    source = fields.String(allow_none=True)
    provider = fields.String(allow_none=True)
    last_updated = fields.String(allow_none=True)
    error = fields.String(allow_none=True)


class RateQuerySchema(Schema):
    direction = fields.String(
        load_default=None,
        validate=validate.OneOf(DIRECTIONS + tuple(d.lower() for d in DIRECTIONS)),
    )
    wait = fields.Boolean(load_default=False)


class RefreshQuerySchema(Schema):
    wait = fields.Boolean(load_default=False)


class DirectionUpdateSchema(Schema):
    direction = fields.String(
        required=True,
        validate=validate.OneOf(DIRECTIONS + tuple(d.lower() for d in DIRECTIONS)),
    )
    wait = fields.Boolean(load_default=False)


class RateStateSchema(Schema):
    direction = fields.String(required=True)
    from_currency = fields.String(required=True)
    to_currency = fields.String(required=True)
    rate = fields.Float(allow_none=True)
    is_loading = fields.Boolean(required=True)
    error = fields.String(allow_none=True)
    source = fields.String(allow_none=True)
    provider = fields.String(allow_none=True)
    last_updated = fields.String(allow_none=True)
    last_updated_display = fields.String()


class ConversionRequestSchema(Schema):
    amount = fields.String(required=True)
    direction = fields.String(
        load_default=None,
        validate=validate.OneOf(DIRECTIONS + tuple(d.lower() for d in DIRECTIONS)),
    )


class ConversionResponseSchema(Schema):
    direction = fields.String(required=True)
    from_currency = fields.String(required=True)
    to_currency = fields.String(required=True)
    amount = fields.Float(required=True)
    converted = fields.Float(required=True)
    rate = fields.Float(required=True)
    formatted_amount = fields.String(required=True)
    formatted_converted = fields.String(required=True)
    source = fields.String(allow_none=True)
    recorded = fields.Boolean(required=True)


class InputValidationRequestSchema(Schema):
    text = fields.String(required=True)
    currency = fields.String(load_default=None, validate=validate.OneOf(CURRENCIES))


class InputValidationResponseSchema(Schema):
    valid = fields.Boolean(required=True)
    formatted = fields.String(required=True)


class HistoryEntrySchema(Schema):
    input_text = fields.String(required=True)
    output_text = fields.String(required=True)
    from_currency = fields.String(required=True)
    to_currency = fields.String(required=True)
    timestamp = fields.String(required=True)


class HistorySchema(Schema):
    items = fields.List(fields.Nested(HistoryEntrySchema), required=True)
    max_entries = fields.Integer(required=True)
