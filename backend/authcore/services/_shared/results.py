"""Typed outcomes for token checks.

Validation failures are expected, frequent and branch-worthy, so they are
returned as values instead of raised. Callers match on
:class:`TokenErrorKind`; the HTTP layer calls :meth:`TokenResult.unwrap` and
lets :class:`~authcore.services._shared.errors.TokenRejected` propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from authcore.services._shared.errors import TokenRejected

T = TypeVar("T")


class TokenErrorKind(Enum):
    """Why a token was refused."""

    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    MISSING_CLAIMS = "missing_claims"
    INVALID_CLAIMS = "invalid_claims"
    WRONG_TYPE = "wrong_type"
    REVOKED = "revoked"
    VERSION_STALE = "version_stale"
    STORE_ERROR = "store_error"


@dataclass(frozen=True, slots=True)
class TokenResult(Generic[T]):
    """
    Either a value or an error kind, never both.

    :ivar value: Payload on success.
    :ivar error: Failure kind, ``None`` on success.
    :ivar detail: Internal diagnostic for logs.
    """

    value: T | None = None
    error: TokenErrorKind | None = None
    detail: str | None = None

    @classmethod
    def success(cls, value: T) -> TokenResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: TokenErrorKind, detail: str | None = None) -> TokenResult[T]:
        return cls(error=error, detail=detail)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise :class:`TokenRejected`."""
        if self.error is not None:
            raise TokenRejected(kind=self.error, detail=self.detail)
        return self.value  # type: ignore[return-value]
