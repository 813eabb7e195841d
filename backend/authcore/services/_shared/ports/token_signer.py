from __future__ import annotations

from typing import Any, Protocol

from authcore.services._shared.results import TokenResult

# Claims every token must carry beyond the registered iss/aud/iat/exp
REQUIRED_CLAIMS = ("sub", "jti", "role")


class TokenSigner(Protocol):
    """
    Port for encoding and verifying signed tokens of one type.

    One instance is bound to one secret, issuer and audience, so access and
    refresh tokens can never be confused for one another at the signature
    level.
    """

    def sign(self, payload: dict[str, Any]) -> str:
        """
        Encode and sign ``payload``.

        :raises ConfigError: When no secret is configured.
        :raises IssuanceError: When ``exp`` is missing or not in the future.
        """

    def verify(self, token: str, *, allow_expired: bool = False) -> TokenResult[dict[str, Any]]:
        """
        Check framing, signature, expiry and required claims.

        Pure: never touches storage.
        """
