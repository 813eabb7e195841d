"""Invitation endpoints: create (admin), check, probe and redeem."""

from __future__ import annotations

from flask import Blueprint, request

from authcore.api.deps import (
    current_claims,
    json_response,
    require_auth,
    require_role,
    service_context,
    timing,
)
from authcore.schemas import (
    InvitationCheckSchema,
    InvitationCreateSchema,
    InvitationProbeSchema,
    InvitationSchema,
    RedemptionSchema,
)
from authcore.services._shared.errors import InvitationExpired, InvitationNotFound, InvitationUsed
from authcore.services.invitations.dto import InvitationStatus
from authcore.services.registry import get_services

bp = Blueprint("invitations", __name__, url_prefix="/invitations")

create_schema = InvitationCreateSchema()
invitation_schema = InvitationSchema()
check_schema = InvitationCheckSchema()
probe_schema = InvitationProbeSchema()
redemption_schema = RedemptionSchema()


@bp.post("")
@require_role("admin")
@timing
def create_invitation():
    """Create a pending invitation for a prospective customer."""

    data = create_schema.load(request.get_json(silent=True) or {})
    out = get_services().invitations.create(data["email"], data["customer_id"], data["ttl_days"])
    return json_response({"data": invitation_schema.dump(out)}, status=201)


@bp.get("/<string:token>")
@timing
def check_invitation(token: str):
    """Return the invitation when it can still be redeemed; 404/410 otherwise."""

    out = get_services().invitations.check(token)
    if out.status is InvitationStatus.NOT_FOUND:
        raise InvitationNotFound()
    if out.status is InvitationStatus.EXPIRED:
        raise InvitationExpired()
    if out.status is InvitationStatus.USED:
        raise InvitationUsed(by_other=False)
    return json_response({"data": check_schema.dump(out)})


@bp.get("/<string:token>/probe")
@timing
def probe_invitation(token: str):
    """Existence and used flag only; never fails for unknown tokens."""

    out = get_services().invitations.probe(token)
    return json_response({"data": probe_schema.dump(out)})


@bp.post("/<string:token>/redeem")
@require_auth
@timing
def redeem_invitation(token: str):
    """Redeem for the authenticated (newly registered) user; repeat calls are idempotent."""

    claims = current_claims()
    services = get_services()
    out = services.invitations.redeem(token, claims.user_id)
    services.audit(service_context()).record(
        "invitation_redeem",
        "success" if out.ok else "failure",
        user_id=claims.user_id,
        outcome=out.status.value,
    )
    out.raise_for_status()
    return json_response({"data": redemption_schema.dump(out)})
