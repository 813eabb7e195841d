from .dto import (
    AuthUserOut,
    LoginIn,
    LoginOut,
    LogoutIn,
    LogoutOut,
    PasswordChangeIn,
    PasswordChangeOut,
)
from .service import AuthService

__all__ = [
    "AuthService",
    "AuthUserOut",
    "LoginIn",
    "LoginOut",
    "LogoutIn",
    "LogoutOut",
    "PasswordChangeIn",
    "PasswordChangeOut",
]
