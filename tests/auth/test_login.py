"""Tests for the credential login flow."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from opsgate.auth import AuthQueries, CredentialLoginFlow, LoginFailure, LoginSuccess
from opsgate.common import Reason, Role
from opsgate.session import IdentityResolver, ImpersonationStore

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
OWNER = "tech@example.com"


def _flow(
    auth_queries: AuthQueries,
    impersonation: ImpersonationStore,
    resolver: IdentityResolver,
) -> CredentialLoginFlow:
    return CredentialLoginFlow(auth_queries, impersonation, resolver, clock=lambda: NOW)


@pytest.mark.asyncio
class TestCredentialLoginFlow:
    """Test suite for CredentialLoginFlow."""

    async def test_success(
        self,
        auth_queries: AuthQueries,
        impersonation: ImpersonationStore,
        technician_resolver: IdentityResolver,
    ) -> None:
        """Test that a login resets counters and writes the override."""
        stored = await auth_queries.add_credential(
            "ops-admin",
            "pw",
            Role.ADMIN,
            OWNER,
            login_attempts=3,
            locked_until=NOW - timedelta(minutes=5),
        )

        result = await _flow(auth_queries, impersonation, technician_resolver).login(
            "ops-admin",
            "pw",
        )

        assert isinstance(result, LoginSuccess)
        assert result.dashboard == "AdminDashboard"
        assert result.credential.last_login == NOW
        assert impersonation.get() is Role.ADMIN

        refreshed = await auth_queries.get_credential(stored.id)
        assert refreshed is not None
        assert refreshed.login_attempts == 0
        assert refreshed.locked_until is None
        assert refreshed.last_login == NOW

    @pytest.mark.parametrize(("username", "password"), [("", "pw"), ("ops", "")])
    async def test_missing_fields(
        self,
        impersonation: ImpersonationStore,
        technician_resolver: IdentityResolver,
        username: str,
        password: str,
    ) -> None:
        """Test that empty input is refused before any lookup."""
        queries = AsyncMock(spec=AuthQueries)
        result = await _flow(queries, impersonation, technician_resolver).login(
            username,
            password,
        )

        assert result == LoginFailure(Reason.MISSING_FIELDS)
        queries.find_active_credential.assert_not_awaited()

    async def test_wrong_password_and_unknown_user_look_alike(
        self,
        auth_queries: AuthQueries,
        impersonation: ImpersonationStore,
        technician_resolver: IdentityResolver,
    ) -> None:
        """Test that failures do not reveal whether the username exists."""
        await auth_queries.add_credential("ops", "pw", Role.ADMIN, OWNER)
        flow = _flow(auth_queries, impersonation, technician_resolver)

        wrong_password = await flow.login("ops", "not-pw")
        unknown_user = await flow.login("ghost", "pw")

        assert wrong_password == unknown_user == LoginFailure(Reason.INVALID_CREDENTIALS)
        assert wrong_password.message == unknown_user.message
        assert impersonation.get() is None

    async def test_failure_does_not_touch_record(
        self,
        auth_queries: AuthQueries,
        impersonation: ImpersonationStore,
        technician_resolver: IdentityResolver,
    ) -> None:
        """Test that failed logins leave the counters alone."""
        stored = await auth_queries.add_credential("ops", "pw", Role.ADMIN, OWNER)

        await _flow(auth_queries, impersonation, technician_resolver).login("ops", "bad")

        assert await auth_queries.get_credential(stored.id) == stored

    async def test_locked_account(
        self,
        auth_queries: AuthQueries,
        impersonation: ImpersonationStore,
        technician_resolver: IdentityResolver,
    ) -> None:
        """Test that an open lockout window refuses the login untouched."""
        stored = await auth_queries.add_credential(
            "ops",
            "pw",
            Role.ADMIN,
            OWNER,
            login_attempts=5,
            locked_until=NOW + timedelta(minutes=10),
        )

        result = await _flow(auth_queries, impersonation, technician_resolver).login(
            "ops",
            "pw",
        )

        assert result == LoginFailure(Reason.ACCOUNT_LOCKED)
        refreshed = await auth_queries.get_credential(stored.id)
        assert refreshed is not None
        assert refreshed.last_login is None
        assert refreshed.login_attempts == 5
        assert impersonation.get() is None

    async def test_credential_of_another_account(
        self,
        auth_queries: AuthQueries,
        impersonation: ImpersonationStore,
        make_resolver: Callable[..., IdentityResolver],
    ) -> None:
        """Test that a credential bound to another email sets no override."""
        stored = await auth_queries.add_credential("ops", "pw", Role.ADMIN, OWNER)
        resolver = make_resolver("user", email="intruder@example.com")

        result = await _flow(auth_queries, impersonation, resolver).login("ops", "pw")

        assert result == LoginFailure(Reason.IDENTITY_MISMATCH)
        assert impersonation.get() is None
        assert await auth_queries.get_credential(stored.id) == stored

    async def test_signed_out_session(
        self,
        auth_queries: AuthQueries,
        impersonation: ImpersonationStore,
        anonymous_resolver: IdentityResolver,
    ) -> None:
        """Test that a credential login needs a signed-in account."""
        await auth_queries.add_credential("ops", "pw", Role.ADMIN, OWNER)

        result = await _flow(auth_queries, impersonation, anonymous_resolver).login(
            "ops",
            "pw",
        )

        assert result == LoginFailure(Reason.IDENTITY_MISMATCH)
        assert impersonation.get() is None
