"""Schemas for API requests and responses.

Decimal values are always rendered as strings so no precision is lost in JSON.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


def _currency_field(**kwargs) -> fields.String:
    return fields.String(validate=validate.Length(equal=3), **kwargs)


class HealthSchema(Schema):
    status = fields.String(required=True)
    ready = fields.Boolean(required=True)
    redis = fields.String(required=True)
    last_update = fields.Date(allow_none=True)
    last_refreshed_at = fields.DateTime(allow_none=True)


class LatestRatesQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    base = _currency_field(load_default=None)


class LatestRatesSchema(Schema):
    date = fields.Date(required=True)
    base = fields.String(required=True)
    rates = fields.Dict(keys=fields.String(), values=fields.Decimal(as_string=True))


class ConvertQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    from_currency = _currency_field(required=True, data_key="from")
    to_currency = _currency_field(required=True, data_key="to")
    # Kept as text and parsed as Decimal by the service.
    amount = fields.String(required=True)


class ConvertResultSchema(Schema):
    from_currency = fields.String(required=True, data_key="from")
    to_currency = fields.String(required=True, data_key="to")
    amount = fields.Decimal(as_string=True, required=True)
    result = fields.Decimal(as_string=True, required=True)
    rate = fields.Decimal(as_string=True, required=True)
    date = fields.Date(required=True)


class RefreshResultSchema(Schema):
    message = fields.String(required=True)
    status = fields.String(required=True)
    trigger = fields.String()
    snapshot_date = fields.Date(allow_none=True)
    cache_written = fields.Boolean()
    error = fields.String(allow_none=True)


class RefreshThrottleSchema(Schema):
    message = fields.String(required=True)
    retry_after = fields.Integer(required=True)


class ErrorMessageSchema(Schema):
    message = fields.String(required=True)
