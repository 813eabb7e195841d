"""SQLAlchemy adapters; each operation owns its unit of work."""

from .blacklist import SQLTokenBlacklist
from .invitation_repository import SQLInvitationRepository
from .rate_limit_store import SQLRateLimitStore
from .schema_repair import RepairReport, SchemaRepair
from .token_store import SQLTokenStore
from .user_directory import SQLUserDirectory

__all__ = [
    "RepairReport",
    "SQLInvitationRepository",
    "SQLRateLimitStore",
    "SQLTokenBlacklist",
    "SQLTokenStore",
    "SQLUserDirectory",
    "SchemaRepair",
]
