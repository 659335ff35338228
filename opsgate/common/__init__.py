"""Common data models and utilities for the application."""

from .errors import InsufficientPrivilegeError, Reason
from .identity import (
    AuthError,
    AuthErrorKind,
    Identity,
    IdentityNotFoundError,
    IdentityOk,
    IdentityResult,
)
from .roles import ROLE_RANKS, Role, rank

__all__ = [
    "ROLE_RANKS",
    "AuthError",
    "AuthErrorKind",
    "Identity",
    "IdentityNotFoundError",
    "IdentityOk",
    "IdentityResult",
    "InsufficientPrivilegeError",
    "Reason",
    "Role",
    "rank",
]
