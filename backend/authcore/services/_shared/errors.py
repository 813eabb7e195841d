"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. They are the stable contract between adapters, ports and services.

Token *validation* failures are not raised: they travel as
:class:`~authcore.services._shared.results.TokenResult` values. Only callers
that opt into exception flow (``TokenResult.unwrap()``) see
:class:`TokenRejected`.

The translation to HTTP responses (RFC 7807) is handled by
``authcore/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from authcore.services._shared.results import TokenErrorKind

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from adapters or domain logic.
    - The API layer or BaseService will later translate them to APIError.
    """

    pass


# --------------------------------------------------------------------------- #
# Infrastructure & configuration
# --------------------------------------------------------------------------- #


class ConfigError(ServiceError):
    """A required setting (typically a signing secret) is missing or invalid."""


class StoreError(ServiceError):
    """
    A persistence backend failed.

    Validation treats it as "cannot confirm validity" and fails closed;
    issuance lets it abort the request.
    """

    def __init__(self, operation: str, message: str | None = None) -> None:
        super().__init__(message or f"Store operation failed: {operation}")
        self.operation = operation


class IssuanceError(ServiceError):
    """A token could not be minted (missing subject, past expiry...)."""


# --------------------------------------------------------------------------- #
# Tokens & credentials
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class TokenRejected(ServiceError):
    """
    Raised by ``TokenResult.unwrap()`` for callers that prefer exceptions.

    :param kind: Machine-readable reason.
    :param detail: Internal detail for logs; never shown to clients.
    """

    kind: TokenErrorKind
    detail: str | None = None

    def __str__(self) -> str:  # pragma: no cover
        return f"Token rejected: {self.kind.value}"


class InvalidCredentials(ServiceError):
    """
    Unknown email, wrong password, unverified account or role mismatch.

    All four collapse into one error so responses never reveal which one.
    """

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


@dataclass(slots=True)
class AccountLocked(ServiceError):
    """Too many failed attempts from this address; retry after the lockout."""

    retry_after: int

    def __str__(self) -> str:  # pragma: no cover
        return f"Too many attempts. Retry in {self.retry_after} seconds."


class AuthorizationError(ServiceError):
    """The caller is authenticated but lacks the required role."""


# --------------------------------------------------------------------------- #
# Invitations
# --------------------------------------------------------------------------- #


class InvitationNotFound(ServiceError):
    def __init__(self) -> None:
        super().__init__("Invitation not found")


@dataclass(slots=True)
class InvitationUsed(ServiceError):
    """
    The invitation was already redeemed.

    :param by_other: ``True`` when a different user redeemed it.
    """

    by_other: bool = True

    def __str__(self) -> str:  # pragma: no cover
        return "Invitation already used"


class InvitationExpired(ServiceError):
    def __init__(self) -> None:
        super().__init__("Invitation expired")


# --------------------------------------------------------------------------- #
# Generic lookups
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "Invitation").
    :param detail: Short human-readable explanation.
    """

    entity: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"
