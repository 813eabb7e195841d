from .dto import (
    InvitationCheckOut,
    InvitationOut,
    InvitationProbeOut,
    InvitationSettings,
    InvitationStatus,
    RedemptionOut,
    RedemptionStatus,
)
from .service import InvitationService

__all__ = [
    "InvitationCheckOut",
    "InvitationOut",
    "InvitationProbeOut",
    "InvitationService",
    "InvitationSettings",
    "InvitationStatus",
    "RedemptionOut",
    "RedemptionStatus",
]
