from .dto import LOGIN_ACTION, RateLimitSettings, RateLimitStatus
from .service import RateLimiter

__all__ = ["LOGIN_ACTION", "RateLimitSettings", "RateLimitStatus", "RateLimiter"]
