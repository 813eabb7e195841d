# authcore/services/invitations/service.py
from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.errors import ConflictError, ServiceError
from authcore.services._shared.ports import (
    Clock,
    InvitationRecord,
    InvitationRepository,
    SystemClock,
)
from authcore.services.invitations.dto import (
    InvitationCheckOut,
    InvitationOut,
    InvitationProbeOut,
    InvitationSettings,
    InvitationStatus,
    RedemptionOut,
    RedemptionStatus,
)

log = logging.getLogger(__name__)

_CREATE_ATTEMPTS = 3


class InvitationService(BaseService):
    """
    Single-use invitations gating self-registration.

    State is derived from two columns: ``used_at`` (set exactly once by the
    repository's conditional update) and ``expires_at`` (time).

    :param repo: Invitation persistence.
    :param settings: Default TTL and token size.
    :param clock: Time source.
    """

    def __init__(
        self,
        *,
        repo: InvitationRepository,
        settings: InvitationSettings | None = None,
        clock: Clock | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.repo = repo
        self.settings = settings or InvitationSettings()
        self.clock = clock or SystemClock()

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def create(self, email: str, customer_id: int, ttl_days: int | None = None) -> InvitationOut:
        """
        Create a pending invitation with a fresh random token.

        :param email: Invited address (normalized).
        :param customer_id: Prospective customer record it unlocks.
        :param ttl_days: Lifetime; defaults to the configured value.
        :raises ServiceError: On an empty email or non-positive TTL.
        """
        email = (email or "").strip().lower()
        if not email:
            raise ServiceError("Email is required")
        days = self.settings.ttl_days if ttl_days is None else ttl_days
        if days <= 0:
            raise ServiceError("Invitation TTL must be positive")

        now = self.clock.now()
        attempt = 0
        while True:
            attempt += 1
            record = InvitationRecord(
                token=secrets.token_hex(self.settings.token_bytes),
                email=email,
                customer_id=customer_id,
                created_at=now,
                expires_at=now + timedelta(days=days),
            )
            try:
                stored = self.repo.add(record)
            except ConflictError:
                if attempt >= _CREATE_ATTEMPTS:
                    raise
                continue
            log.info(
                "invitation.created",
                extra={"action": "invitation_create", "user_id": self.ctx.actor_id},
            )
            return InvitationOut(
                token=stored.token,
                email=stored.email,
                customer_id=stored.customer_id,
                created_at=stored.created_at,
                expires_at=stored.expires_at,
            )

    def redeem(self, token: str, user_id: int) -> RedemptionOut:
        """
        Consume the invitation for ``user_id``, at most once overall.

        The claim is one conditional update; when it affects no row the
        invitation is re-read to tell the caller why. Repeating a successful
        redemption with the same user reports ``ALREADY_REDEEMED``.
        """
        now = self.clock.now()
        if self.repo.mark_used(token, user_id=user_id, now=now) == 1:
            row = self.repo.get(token)
            log.info(
                "invitation.redeemed",
                extra={"action": "invitation_redeem", "user_id": user_id},
            )
            return RedemptionOut(
                status=RedemptionStatus.OK,
                customer_id=row.customer_id if row else None,
                email=row.email if row else None,
                used_at=now,
            )

        row = self.repo.get(token)
        if row is None:
            return RedemptionOut(status=RedemptionStatus.NOT_FOUND)
        if row.used:
            status = (
                RedemptionStatus.ALREADY_REDEEMED
                if row.used_by_user_id == user_id
                else RedemptionStatus.ALREADY_USED_BY_OTHER
            )
        else:
            status = RedemptionStatus.EXPIRED
        log.warning(
            "invitation.redeem_refused",
            extra={"action": "invitation_redeem", "user_id": user_id, "reason": status.value},
        )
        return RedemptionOut(
            status=status,
            customer_id=row.customer_id,
            email=row.email,
            used_at=row.used_at,
        )

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def probe(self, token: str) -> InvitationProbeOut:
        """Existence and used flag only."""
        row = self.repo.get(token)
        if row is None:
            return InvitationProbeOut(exists=False)
        return InvitationProbeOut(exists=True, used=row.used)

    def check(self, token: str) -> InvitationCheckOut:
        """Classify the invitation; an elapsed expiry wins over ``used``."""
        row = self.repo.get(token)
        if row is None:
            return InvitationCheckOut(status=InvitationStatus.NOT_FOUND)
        if row.is_expired(self.clock.now()):
            status = InvitationStatus.EXPIRED
        elif row.used:
            status = InvitationStatus.USED
        else:
            status = InvitationStatus.VALID
        return InvitationCheckOut(
            status=status,
            customer_id=row.customer_id,
            email=row.email,
            expires_at=row.expires_at,
        )
