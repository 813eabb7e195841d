"""Marshmallow schemas for request validation and response shaping."""

from .auth import (
    AuthUserSchema,
    LoginResponseSchema,
    LoginSchema,
    LogoutSchema,
    PasswordChangeSchema,
    RefreshSchema,
    TokenResponseSchema,
    WhoAmISchema,
)
from .invitation import (
    InvitationCheckSchema,
    InvitationCreateSchema,
    InvitationProbeSchema,
    InvitationSchema,
    RedemptionSchema,
)

__all__ = [
    "AuthUserSchema",
    "InvitationCheckSchema",
    "InvitationCreateSchema",
    "InvitationProbeSchema",
    "InvitationSchema",
    "LoginResponseSchema",
    "LoginSchema",
    "LogoutSchema",
    "PasswordChangeSchema",
    "RedemptionSchema",
    "RefreshSchema",
    "TokenResponseSchema",
    "WhoAmISchema",
]
