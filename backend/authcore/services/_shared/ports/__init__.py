"""
authcore.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token management, invitations and login throttling.

These ports decouple the service layer from concrete implementations of
signing, persistence and counters.

Modules
-------
- :mod:`clock`:
    :class:`~.Clock` with :class:`~.SystemClock` and :class:`~.FrozenClock`.
- :mod:`token_signer`:
    :class:`~.TokenSigner`: encode/verify signed tokens of one type.
- :mod:`token_store`:
    :class:`~.TokenStore`: issued-token metadata (hashes, expiry, revocation).
- :mod:`blacklist`:
    :class:`~.TokenBlacklist`: idempotent jti revocation ledger.
- :mod:`user_directory`:
    :class:`~.UserDirectory`: user lookups and ``token_version`` bumps.
- :mod:`invitation_repository`:
    :class:`~.InvitationRepository`: invitations and the redemption CAS.
- :mod:`rate_limit_store`:
    :class:`~.RateLimitStore`: atomic attempt counters.

Design Notes
------------
All these ports follow the *Dependency Inversion Principle*. In-memory
implementations live next to each port for unit tests; concrete adapters
(SQL, Redis, PyJWT) live under ``authcore.infra``.
"""

from __future__ import annotations

from .blacklist import InMemoryTokenBlacklist, TokenBlacklist
from .clock import Clock, FrozenClock, SystemClock
from .invitation_repository import (
    InMemoryInvitationRepository,
    InvitationRecord,
    InvitationRepository,
)
from .rate_limit_store import AttemptState, InMemoryRateLimitStore, RateLimitStore
from .token_signer import REQUIRED_CLAIMS, TokenSigner
from .token_store import InMemoryTokenStore, IssuedTokenView, TokenStore, hash_token
from .user_directory import InMemoryUserDirectory, UserDirectory, UserRecord

__all__ = [
    "AttemptState",
    "Clock",
    "FrozenClock",
    "InMemoryInvitationRepository",
    "InMemoryRateLimitStore",
    "InMemoryTokenBlacklist",
    "InMemoryTokenStore",
    "InMemoryUserDirectory",
    "InvitationRecord",
    "InvitationRepository",
    "IssuedTokenView",
    "RateLimitStore",
    "REQUIRED_CLAIMS",
    "SystemClock",
    "TokenBlacklist",
    "TokenSigner",
    "TokenStore",
    "UserDirectory",
    "UserRecord",
    "hash_token",
]
