"""Shared fixtures for the test suite."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio

from opsgate.auth import AuthQueries
from opsgate.common import Identity, IdentityNotFoundError, Role
from opsgate.session import IdentityResolver, ImpersonationStore

TEST_EMAIL = "tech@example.com"
TEST_PASSWORD = "correct horse battery staple"  # noqa: S105


def lookup_returning(identity: Identity) -> Callable[[], Awaitable[Identity]]:
    """Build an identity lookup that always finds ``identity``."""

    async def lookup() -> Identity:
        return identity

    return lookup


async def no_session_lookup() -> Identity:
    """Identity lookup for a visitor without a session."""
    msg = "No access token"
    raise IdentityNotFoundError(msg)


async def broken_lookup() -> Identity:
    """Identity lookup whose transport fails."""
    msg = "connection reset"
    raise ConnectionError(msg)


@pytest.fixture
def session_state() -> dict:
    """Stand-in for the browser session mapping."""
    return {}


@pytest.fixture
def impersonation(session_state: dict) -> ImpersonationStore:
    """Impersonation store over an empty session."""
    return ImpersonationStore(session_state)


@pytest.fixture
def technician() -> Identity:
    """An authenticated technician."""
    return Identity(email=TEST_EMAIL, role=Role.TECHNICIAN.value)


@pytest.fixture
def technician_resolver(technician: Identity) -> IdentityResolver:
    """Resolver for a signed-in technician."""
    return IdentityResolver(lookup_returning(technician))


@pytest.fixture
def anonymous_resolver() -> IdentityResolver:
    """Resolver for a visitor without a session."""
    return IdentityResolver(no_session_lookup)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Path of a fresh SQLite database file."""
    return str(tmp_path / "test.db")


@pytest_asyncio.fixture
async def auth_queries(db_path: str) -> AsyncGenerator[AuthQueries, None]:
    """Repository over a temporary database with initialized tables."""
    queries = await AuthQueries.create(db_path)
    await queries.initialize_tables()
    try:
        yield queries
    finally:
        await queries.close()


@pytest.fixture
def broken_resolver() -> IdentityResolver:
    """Resolver whose identity lookup fails in transit."""
    return IdentityResolver(broken_lookup)


@pytest.fixture
def make_resolver() -> Callable[[str], IdentityResolver]:
    """Factory building a resolver for an account with the given role."""

    def factory(role: str, email: str = TEST_EMAIL) -> IdentityResolver:
        return IdentityResolver(lookup_returning(Identity(email=email, role=role)))

    return factory
