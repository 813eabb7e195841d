from .hs256_signer import HS256TokenSigner

__all__ = ["HS256TokenSigner"]
