# authcore/infra/jwt/hs256_signer.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import jwt

from authcore.services._shared.errors import ConfigError, IssuanceError
from authcore.services._shared.ports import REQUIRED_CLAIMS, Clock, SystemClock, TokenSigner
from authcore.services._shared.results import TokenErrorKind, TokenResult

log = logging.getLogger(__name__)

ALGORITHM = "HS256"

# header.payload.signature, each non-empty base64url without padding
_FRAMING = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+$")

# Expiry is checked against the injected clock, not PyJWT's wall clock.
# Subject and jti keep the type they were signed with (user ids are ints).
_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "verify_aud": True,
    "verify_iss": True,
    "verify_sub": False,
    "verify_jti": False,
    "require": ["exp", "iat"],
}


@dataclass(slots=True)
class HS256TokenSigner(TokenSigner):
    """
    HMAC-SHA256 signer/verifier for one token type, built on PyJWT.

    :param secret: Shared HMAC key. Empty means "not configured".
    :param issuer: ``iss`` written on sign and enforced on verify.
    :param audience: ``aud`` written on sign and enforced on verify.
    :param clock: Time source for expiry decisions.
    :param leeway: Seconds of clock skew tolerated on ``exp``.
    """

    secret: str
    issuer: str
    audience: str
    clock: Clock = field(default_factory=SystemClock)
    leeway: int = 0

    def _require_secret(self) -> str:
        if not self.secret:
            raise ConfigError(f"No signing secret configured for audience {self.audience!r}")
        return self.secret

    def sign(self, payload: dict[str, Any]) -> str:
        secret = self._require_secret()
        claims = dict(payload)
        claims.setdefault("iss", self.issuer)
        claims.setdefault("aud", self.audience)
        exp = claims.get("exp")
        if not isinstance(exp, int | float):
            raise IssuanceError("Token payload has no numeric 'exp'")
        if exp <= self.clock.now().timestamp():
            raise IssuanceError("Refusing to issue a token that is already expired")
        return jwt.encode(claims, secret, algorithm=ALGORITHM, headers={"typ": "JWT"})

    def verify(self, token: str, *, allow_expired: bool = False) -> TokenResult[dict[str, Any]]:
        secret = self._require_secret()
        if not isinstance(token, str) or not _FRAMING.match(token):
            return TokenResult.failure(TokenErrorKind.MALFORMED, "bad framing")

        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                options=_DECODE_OPTIONS,
            )
        except jwt.InvalidSignatureError:
            # Must precede DecodeError, its base class
            return TokenResult.failure(TokenErrorKind.INVALID_SIGNATURE)
        except jwt.DecodeError as exc:
            return TokenResult.failure(TokenErrorKind.MALFORMED, str(exc))
        except jwt.MissingRequiredClaimError as exc:
            return TokenResult.failure(TokenErrorKind.MISSING_CLAIMS, str(exc))
        except jwt.InvalidTokenError as exc:
            return TokenResult.failure(TokenErrorKind.INVALID_CLAIMS, str(exc))

        exp = payload.get("exp")
        if not isinstance(exp, int | float):
            return TokenResult.failure(TokenErrorKind.INVALID_CLAIMS, "non-numeric exp")
        if not allow_expired and exp + self.leeway <= self.clock.now().timestamp():
            return TokenResult.failure(TokenErrorKind.EXPIRED)

        missing = [c for c in REQUIRED_CLAIMS if payload.get(c) in (None, "")]
        if missing:
            return TokenResult.failure(TokenErrorKind.MISSING_CLAIMS, ",".join(missing))

        return TokenResult.success(payload)
