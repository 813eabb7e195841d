from authcore.repositories.auth_log import AuthLogRepository
from authcore.repositories.blacklist import BlacklistRepository
from authcore.repositories.invitation import InvitationRepository
from authcore.repositories.issued_token import IssuedTokenRepository
from authcore.repositories.rate_limit import RateLimitRepository
from authcore.repositories.user import UserRepository

__all__ = [
    "AuthLogRepository",
    "BlacklistRepository",
    "InvitationRepository",
    "IssuedTokenRepository",
    "RateLimitRepository",
    "UserRepository",
]
