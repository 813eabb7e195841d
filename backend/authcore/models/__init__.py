from authcore.models.auth_log import AuthLog
from authcore.models.blacklist import BlacklistEntry, BlacklistReason
from authcore.models.invitation import Invitation
from authcore.models.issued_token import IssuedToken
from authcore.models.rate_limit import RateLimit
from authcore.models.user import User, UserRole

__all__ = [
    "AuthLog",
    "BlacklistEntry",
    "BlacklistReason",
    "Invitation",
    "IssuedToken",
    "RateLimit",
    "User",
    "UserRole",
]
