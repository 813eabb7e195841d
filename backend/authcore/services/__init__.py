"""Service layer public API.

This package exposes the essential building blocks for the service layer so
that callers can import from :mod:`authcore.services` without knowing the
internal structure.

Re-exports
----------
- Base primitives (from ``authcore.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Token lifecycle (from ``authcore.services.tokens``)
    * :class:`TokenService`, :class:`TokenSettings`

- Invitations (from ``authcore.services.invitations``)
    * :class:`InvitationService`, :class:`InvitationSettings`

- Login throttling (from ``authcore.services.rate_limit``)
    * :class:`RateLimiter`, :class:`RateLimitSettings`

- Login orchestration and audit (from ``authcore.services.auth`` / ``audit``)
    * :class:`AuthService`, :class:`AuthAuditLog`

The composition root (:mod:`authcore.services.registry`) is not re-exported:
it imports the concrete adapters under :mod:`authcore.infra`, which in turn
depend on this package.
"""

from __future__ import annotations

from ._shared.base import BaseService, ServiceContext
from .audit.service import AuthAuditLog
from .auth.service import AuthService
from .invitations.dto import InvitationSettings
from .invitations.service import InvitationService
from .rate_limit.dto import RateLimitSettings
from .rate_limit.service import RateLimiter
from .tokens.dto import TokenSettings
from .tokens.service import TokenService

__all__ = [
    "AuthAuditLog",
    "AuthService",
    "BaseService",
    "InvitationService",
    "InvitationSettings",
    "RateLimitSettings",
    "RateLimiter",
    "ServiceContext",
    "TokenService",
    "TokenSettings",
]
