from .dto import InvalidationOut, TokenClaims, TokenPairOut, TokenSettings
from .service import TokenService

__all__ = ["InvalidationOut", "TokenClaims", "TokenPairOut", "TokenService", "TokenSettings"]
