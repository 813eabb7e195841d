"""Invitation Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class InvitationCreateSchema(Schema):
    """Input payload for creating an invitation (admin only)."""

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, validate=validate.Length(max=254))
    customer_id = fields.Integer(required=True, strict=True, validate=validate.Range(min=1))
    ttl_days = fields.Integer(load_default=None, validate=validate.Range(min=1, max=365))


class InvitationSchema(Schema):
    token = fields.String()
    email = fields.Email()
    customer_id = fields.Integer()
    created_at = fields.DateTime()
    expires_at = fields.DateTime()


class InvitationCheckSchema(Schema):
    """Public view of :class:`InvitationCheckOut`; status is the enum value."""

    status = fields.Function(lambda obj: obj.status.value)
    valid = fields.Boolean(attribute="is_valid")
    customer_id = fields.Integer(allow_none=True)
    email = fields.Email(allow_none=True)
    expires_at = fields.DateTime(allow_none=True)


class InvitationProbeSchema(Schema):
    exists = fields.Boolean()
    used = fields.Boolean()


class RedemptionSchema(Schema):
    status = fields.Function(lambda obj: obj.status.value)
    customer_id = fields.Integer(allow_none=True)
    email = fields.Email(allow_none=True)
    used_at = fields.DateTime(allow_none=True)
