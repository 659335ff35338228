"""All authentication-related modules and routes."""

from .auth_routes import configure_auth_router
from .login import CredentialLoginFlow, LoginFailure, LoginResult, LoginSuccess
from .queries import AuthQueries
from .security_manager import SecurityManager
from .validation import Validate

__all__ = [
    "AuthQueries",
    "CredentialLoginFlow",
    "LoginFailure",
    "LoginResult",
    "LoginSuccess",
    "SecurityManager",
    "Validate",
    "configure_auth_router",
]
