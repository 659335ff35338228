"""Authenticated identity and the tagged result of looking one up."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .roles import Role


@dataclass(frozen=True)
class Identity:
    """The authenticated principal.

    :param email: Unique identity key
    :param role: Account role as stored, possibly outside the known role set
    :param profile: Additional profile fields, ignored by access decisions
    """

    email: str
    role: str
    profile: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def account_role(self) -> Role:
        """The account role mapped onto the known role set."""
        return Role.coerce(self.role)


class AuthErrorKind(StrEnum):
    """Why an identity could not be resolved."""

    NO_SESSION = "no-session"
    LOOKUP_FAILED = "lookup-failed"


class IdentityNotFoundError(Exception):
    """Raised by an identity lookup when no valid session exists."""


@dataclass(frozen=True)
class IdentityOk:
    """Successful identity resolution."""

    identity: Identity


@dataclass(frozen=True)
class AuthError:
    """Failed identity resolution.

    :param kind: Missing session or a failing lookup
    :param detail: Optional description for logs, never shown to clients
    """

    kind: AuthErrorKind
    detail: str | None = None


IdentityResult = IdentityOk | AuthError
