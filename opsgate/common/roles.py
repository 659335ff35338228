"""Role hierarchy for the operations dashboard."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Account roles, listed from least to most privileged."""

    USER = "user"
    TECHNICIAN = "technician"
    DEVELOPER = "developer"
    ADMIN = "admin"

    @classmethod
    def coerce(cls, value: object) -> Role:
        """Map any value onto the closed role set.

        Unknown or missing values become ``Role.USER`` so that they fail
        every gate above the lowest level.

        :param value: A role, a role string, or anything else
        :return: The matching role, or ``Role.USER``
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.USER

    @property
    def rank(self) -> int:
        """Privilege rank of this role."""
        return ROLE_RANKS[self]

    def check_permission(self, required_role: Role | str | None) -> bool:
        """Check if the current role has permission for the required role.

        :param required_role: The minimum role needed
        :return: True if the current role ranks at or above the required role
        """
        return self.rank >= rank(required_role)

    def has_higher_permission(self, other: Role | str | None) -> bool:
        """Check if the current role strictly outranks another role."""
        return self.rank > rank(other)


ROLE_RANKS: dict[Role, int] = {
    Role.USER: 1,
    Role.TECHNICIAN: 2,
    Role.DEVELOPER: 3,
    Role.ADMIN: 4,
}


def rank(role: Role | str | None) -> int:
    """Return the privilege rank of a role.

    Total over any input: unrecognised roles rank as ``user``.

    :param role: A role, a role string, or None
    :return: The integer rank
    """
    return ROLE_RANKS[Role.coerce(role)]
