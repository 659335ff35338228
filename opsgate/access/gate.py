"""Role-based access gate."""

from __future__ import annotations

from dataclasses import dataclass

from opsgate.common import IdentityOk, IdentityResult, Reason, Role, rank


@dataclass(frozen=True)
class Allow:
    """Access granted."""

    effective_role: Role

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Deny:
    """Access refused.

    :param reason: ``UNAUTHENTICATED`` or ``INSUFFICIENT_PRIVILEGE``
    :param effective_role: The role that was checked, None when unauthenticated
    :param required_role: The role the resource requires
    """

    reason: Reason
    required_role: Role
    effective_role: Role | None = None

    def __bool__(self) -> bool:
        return False


AccessDecision = Allow | Deny


def check_access(
    required_role: Role | str,
    identity_result: IdentityResult,
    impersonation: Role | str | None = None,
) -> AccessDecision:
    """Decide whether a resolved identity may enter a resource.

    The override, when present, replaces the account role entirely. Roles
    outside the known set rank as ``user``.

    :param required_role: Minimum role for the resource
    :param identity_result: Result of the identity resolver
    :param impersonation: The current impersonation override, if any
    :return: Allow, or Deny with a reason
    """
    required = Role.coerce(required_role)

    if not isinstance(identity_result, IdentityOk):
        return Deny(Reason.UNAUTHENTICATED, required)

    effective_role = (
        impersonation if impersonation else identity_result.identity.role
    )
    effective = Role.coerce(effective_role)

    if rank(effective_role) >= rank(required):
        return Allow(effective)
    return Deny(Reason.INSUFFICIENT_PRIVILEGE, required, effective)
