"""Tests for the account and credential repository."""

from datetime import UTC, datetime, timedelta

import pytest

from opsgate.auth import AuthQueries
from opsgate.auth.security_manager import hash_credential_password
from opsgate.common import Role


@pytest.mark.asyncio
class TestAccounts:
    """Test suite for account queries."""

    async def test_add_and_get_account(self, auth_queries: AuthQueries) -> None:
        """Test that a seeded account can be looked up by email."""
        await auth_queries.add_account(
            "dev@example.com",
            "pw",
            Role.DEVELOPER,
            display_name="Dev",
        )

        identity = await auth_queries.get_account("dev@example.com")
        assert identity is not None
        assert identity.role == "developer"
        assert identity.profile["display_name"] == "Dev"
        assert await auth_queries.count_accounts() == 1
        assert await auth_queries.get_account("nobody@example.com") is None

    async def test_authenticate_account(self, auth_queries: AuthQueries) -> None:
        """Test account password checks."""
        await auth_queries.add_account("a@example.com", "right", Role.ADMIN)

        identity = await auth_queries.authenticate_account("a@example.com", "right")
        assert identity is not None
        assert identity.account_role is Role.ADMIN
        assert await auth_queries.authenticate_account("a@example.com", "wrong") is None
        assert await auth_queries.authenticate_account("b@example.com", "right") is None


@pytest.mark.asyncio
class TestCredentials:
    """Test suite for credential queries."""

    async def test_find_active_credential(self, auth_queries: AuthQueries) -> None:
        """Test lookup by username, hash and active status."""
        stored = await auth_queries.add_credential(
            "ops",
            "pw",
            Role.TECHNICIAN,
            "tech@example.com",
        )

        found = await auth_queries.find_active_credential(
            "ops",
            hash_credential_password("pw"),
        )
        assert found == stored
        assert found.role == "technician"
        assert found.login_attempts == 0
        assert found.locked_until is None

        assert (
            await auth_queries.find_active_credential(
                "ops",
                hash_credential_password("nope"),
            )
            is None
        )

    async def test_inactive_credential_not_found(self, auth_queries: AuthQueries) -> None:
        """Test that inactive credentials never match."""
        await auth_queries.add_credential(
            "old",
            "pw",
            Role.USER,
            "u@example.com",
            status="Suspended",
        )
        assert (
            await auth_queries.find_active_credential(
                "old",
                hash_credential_password("pw"),
            )
            is None
        )

    async def test_record_login_resets_counters(self, auth_queries: AuthQueries) -> None:
        """Test that a recorded login clears attempts and lockout."""
        past = datetime.now(UTC) - timedelta(hours=1)
        stored = await auth_queries.add_credential(
            "ops",
            "pw",
            Role.ADMIN,
            "a@example.com",
            login_attempts=4,
            locked_until=past,
        )
        assert stored.login_attempts == 4
        assert stored.locked_until == past

        now = datetime.now(UTC)
        assert await auth_queries.record_login(stored.id, now) == 1

        refreshed = await auth_queries.get_credential(stored.id)
        assert refreshed is not None
        assert refreshed.login_attempts == 0
        assert refreshed.locked_until is None
        assert refreshed.last_login == now
