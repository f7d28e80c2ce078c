"""
Session tracking against the external identity provider.

Invariants:
    - At most one identity is recorded at a time
    - At most one establish() is in flight; an overlapping call is rejected
    - Every identity change (sign-in or sign-out) flushes the whole QueryCache
      synchronously, because all cached data is identity-scoped
    - "Already established" with no local identity is recovered exactly once:
      clear, wait session_retry_delay (300 ms), retry; other failures surface

How to change safely:
    - Match provider failures on SessionErrorCode, never on message text
    - Keep the cache flush synchronous with the identity change
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from .backend import IdentityProvider
from .cache import QueryCache
from .config import Settings
from .errors import SessionBusyError, SessionDesyncError
from .types import Identity

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Identity | None], None]


class LoginStatus(Enum):
    IDLE = "idle"
    LOGGING_IN = "logging-in"
    SUCCESS = "success"
    ERROR = "login-error"


class SessionStore:
    """Holds the current identity and mediates sign-in and sign-out.

    Example:
        >>> session = SessionStore(provider, cache)
        >>> identity = await session.establish()
        >>> await session.clear()
    """

    def __init__(
        self,
        provider: IdentityProvider,
        cache: QueryCache,
        settings: Settings | None = None,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._settings = settings or Settings()
        self._identity: Identity | None = provider.identity
        self._establishing = False
        self._listeners: list[IdentityListener] = []
        self.status = LoginStatus.SUCCESS if self._identity else LoginStatus.IDLE

    def current_identity(self) -> Identity | None:
        """Current identity, or None when signed out. Never blocks."""
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def is_establishing(self) -> bool:
        return self._establishing

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Call listener with the new identity after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def establish(self) -> Identity:
        """Run the sign-in handshake.

        Returns:
            The established identity (the current one if already signed in)

        Raises:
            SessionBusyError: If another establish() is in flight
            SessionError: If the provider fails (after desync recovery)
        """
        if self._establishing:
            raise SessionBusyError()
        if self._identity is not None:
            return self._identity

        self._establishing = True
        self.status = LoginStatus.LOGGING_IN
        try:
            try:
                identity = await self._provider.establish_session()
            except SessionDesyncError:
                logger.warning(
                    "Provider reports an active session that is not recorded locally; "
                    f"clearing and retrying in {self._settings.session_retry_delay}s"
                )
                await self._provider.clear_session()
                self._cache.clear()
                await asyncio.sleep(self._settings.session_retry_delay)
                identity = await self._provider.establish_session()
        except Exception as e:
            self.status = LoginStatus.ERROR
            logger.error(f"Sign-in failed: {e}")
            raise
        finally:
            self._establishing = False

        self.status = LoginStatus.SUCCESS
        self._set_identity(identity)
        logger.info(f"Signed in as {identity}")
        return identity

    async def clear(self) -> None:
        """Sign out and flush every cached entry.

        Local state is cleared even if the provider call fails; the provider
        error is then re-raised.
        """
        try:
            await self._provider.clear_session()
        finally:
            self.status = LoginStatus.IDLE
            self._set_identity(None)
            logger.info("Signed out")

    def _set_identity(self, identity: Identity | None) -> None:
        changed = identity != self._identity
        self._identity = identity
        self._cache.clear()
        if changed:
            for listener in list(self._listeners):
                listener(identity)
