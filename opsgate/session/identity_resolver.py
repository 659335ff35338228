"""Resolve the current identity once per request."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from opsgate.common import (
    AuthError,
    AuthErrorKind,
    IdentityNotFoundError,
    IdentityOk,
    IdentityResult,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from opsgate.common import Identity

    IdentityLookup = Callable[[], Awaitable[Identity]]

LOGGER = logging.getLogger(__name__)


class IdentityResolver:
    """Wraps an identity lookup so that it runs at most once.

    Concurrent and repeated calls to :meth:`resolve` share a single lookup.
    Failures are never raised: a missing session becomes
    ``AuthError(NO_SESSION)`` and any other error raised by the lookup
    becomes ``AuthError(LOOKUP_FAILED)``.
    """

    def __init__(self, lookup: IdentityLookup) -> None:
        """Create a resolver for one request.

        :param lookup: Coroutine function returning the current identity,
            raising IdentityNotFoundError when there is no session
        """
        self._lookup = lookup
        self._lock = asyncio.Lock()
        self._result: IdentityResult | None = None

    @property
    def resolved(self) -> bool:
        """Whether the lookup has already completed."""
        return self._result is not None

    async def resolve(self) -> IdentityResult:
        """Run the lookup on first call and return its tagged result."""
        async with self._lock:
            if self._result is None:
                self._result = await self._run_lookup()
            return self._result

    async def _run_lookup(self) -> IdentityResult:
        try:
            identity = await self._lookup()
        except IdentityNotFoundError as e:
            LOGGER.debug("No authenticated session: %s", e)
            return AuthError(AuthErrorKind.NO_SESSION, str(e) or None)
        except Exception as e:
            LOGGER.warning("Identity lookup failed", exc_info=True)
            return AuthError(AuthErrorKind.LOOKUP_FAILED, repr(e))

        LOGGER.debug("Resolved identity %s", identity.email)
        return IdentityOk(identity)
