"""Session-scoped identity resolution and impersonation state."""

from .identity_resolver import IdentityResolver
from .impersonation import IMPERSONATION_KEY, ImpersonationStore, RoleContext

__all__ = [
    "IMPERSONATION_KEY",
    "IdentityResolver",
    "ImpersonationStore",
    "RoleContext",
]
