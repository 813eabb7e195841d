# authcore/services/invitations/dto.py
from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from authcore.services._shared.errors import InvitationExpired, InvitationNotFound, InvitationUsed


@dataclass(frozen=True, slots=True)
class InvitationSettings:
    """
    :param ttl_days: Default lifetime of a new invitation.
    :param token_bytes: Random bytes per token (hex doubles the length).
    """

    ttl_days: int = 7
    token_bytes: int = 32

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> InvitationSettings:
        return cls(
            ttl_days=int(cfg.get("INVITATION_TTL_DAYS", 7)),
            token_bytes=int(cfg.get("INVITATION_TOKEN_BYTES", 32)),
        )


class InvitationStatus(str, enum.Enum):
    """Read-side state of an invitation."""

    VALID = "valid"
    USED = "used"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


class RedemptionStatus(str, enum.Enum):
    """Outcome of a redemption attempt."""

    OK = "ok"
    ALREADY_REDEEMED = "already_redeemed"
    ALREADY_USED_BY_OTHER = "already_used_by_other"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class InvitationOut:
    token: str
    email: str
    customer_id: int
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class InvitationProbeOut:
    """Existence check that reveals nothing but ``exists`` and ``used``."""

    exists: bool
    used: bool = False


@dataclass(frozen=True, slots=True)
class InvitationCheckOut:
    """
    Result of :meth:`InvitationService.check`.

    :param status: ``EXPIRED`` wins over ``USED`` once ``expires_at`` passed.
    :param customer_id: Bound customer, ``None`` when not found.
    :param email: Invited address, ``None`` when not found.
    :param expires_at: Expiry, ``None`` when not found.
    """

    status: InvitationStatus
    customer_id: int | None = None
    email: str | None = None
    expires_at: datetime | None = None

    @property
    def is_valid(self) -> bool:
        return self.status is InvitationStatus.VALID


@dataclass(frozen=True, slots=True)
class RedemptionOut:
    """
    Result of :meth:`InvitationService.redeem`.

    ``OK`` and ``ALREADY_REDEEMED`` are both successes for the caller.
    """

    status: RedemptionStatus
    customer_id: int | None = None
    email: str | None = None
    used_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status in (RedemptionStatus.OK, RedemptionStatus.ALREADY_REDEEMED)

    def raise_for_status(self) -> RedemptionOut:
        """
        Raise the matching service error for failed outcomes.

        :raises InvitationNotFound: ``NOT_FOUND``.
        :raises InvitationUsed: ``ALREADY_USED_BY_OTHER``.
        :raises InvitationExpired: ``EXPIRED``.
        """
        if self.status is RedemptionStatus.NOT_FOUND:
            raise InvitationNotFound()
        if self.status is RedemptionStatus.ALREADY_USED_BY_OTHER:
            raise InvitationUsed(by_other=True)
        if self.status is RedemptionStatus.EXPIRED:
            raise InvitationExpired()
        return self
