"""Reason codes shared by the access gate and the login flow."""

from enum import StrEnum


class Reason(StrEnum):
    """Reasons an access check or a login can fail."""

    UNAUTHENTICATED = "unauthenticated"
    INSUFFICIENT_PRIVILEGE = "insufficient-privilege"
    INVALID_CREDENTIALS = "invalid-credentials"
    ACCOUNT_LOCKED = "account-locked"
    MISSING_FIELDS = "missing-fields"
    IDENTITY_MISMATCH = "identity-mismatch"


class InsufficientPrivilegeError(Exception):
    """Raised when an action needs a higher role than the caller holds."""

    reason = Reason.INSUFFICIENT_PRIVILEGE
