from .rate_limit_store import RedisRateLimitStore

__all__ = ["RedisRateLimitStore"]
