"""Per-session role impersonation override.

The override lets a user act as another role in the dashboard. It only
changes which views the dashboard offers and never what the account store
allows the account to do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from opsgate.common import InsufficientPrivilegeError, Role

if TYPE_CHECKING:
    from collections.abc import MutableMapping

    from opsgate.common import Identity

LOGGER = logging.getLogger(__name__)

IMPERSONATION_KEY = "impersonated_role"


@dataclass(frozen=True)
class RoleContext:
    """The real account role paired with the role the session acts as."""

    real_role: Role
    effective_role: Role

    @property
    def impersonating(self) -> bool:
        """Whether an override differs from the real role."""
        return self.real_role != self.effective_role


class ImpersonationStore:
    """Reads and writes the impersonation override in session state.

    :param state: Synchronous key/value storage scoped to the browser session
    """

    def __init__(self, state: MutableMapping[str, Any]) -> None:
        self._state = state

    def get(self) -> Role | None:
        """Return the override, or None when no override is set."""
        value = self._state.get(IMPERSONATION_KEY)
        if not value:
            return None
        return Role.coerce(value)

    def set(self, role: Role | str) -> None:
        """Set the override, replacing any previous one."""
        role = Role.coerce(role)
        self._state[IMPERSONATION_KEY] = role.value
        LOGGER.debug("Impersonation override set to %s", role)

    def clear(self) -> None:
        """Remove the override if present."""
        if self._state.pop(IMPERSONATION_KEY, None) is not None:
            LOGGER.debug("Impersonation override cleared")

    def context(self, identity: Identity) -> RoleContext:
        """Build the role context for an identity.

        :param identity: The resolved identity
        :return: Real role and effective role, the override winning if set
        """
        real_role = identity.account_role
        override = self.get()
        return RoleContext(
            real_role=real_role,
            effective_role=override if override is not None else real_role,
        )

    def switch_to(self, target: Role | str, real_role: Role) -> Role:
        """Switch the session to another role, at most the real role.

        Switching back to the real role clears the override.

        :param target: The role to act as
        :param real_role: The account's real role
        :return: The new effective role
        :raises InsufficientPrivilegeError: If the target outranks the real role
        """
        target = Role.coerce(target)
        if target.has_higher_permission(real_role):
            LOGGER.debug("Refused switch from %s to %s", real_role, target)
            msg = f"Role {real_role} cannot act as {target}"
            raise InsufficientPrivilegeError(msg)

        if target == real_role:
            self.clear()
        else:
            self.set(target)
        return target

    def stop_impersonating(self, real_role: Role) -> Role:
        """Drop the override and return the role the session falls back to."""
        self.clear()
        return real_role
