"""
Cached role, admin and profile reads.

The remote authority decides roles; the client only caches what it is told.
All three reads run with retry disabled so an authorization failure shows up
as an error entry instead of being hidden behind transparent retries.
"""

from __future__ import annotations

from . import keys
from .backend import RemoteService
from .cache import CacheEntry, QueryCache
from .types import AccountType, Option, Present, Role, UserProfile, option


class RoleResolver:
    """Thin cached queries for the caller's admin flag, role and profile."""

    def __init__(self, cache: QueryCache, remote: RemoteService) -> None:
        self._cache = cache
        self._remote = remote

    async def is_admin(self) -> bool:
        return await self._cache.fetch(keys.ADMIN_FLAG, self._remote.is_caller_admin, retry=False)

    async def role(self) -> Role:
        return await self._cache.fetch(
            keys.CALLER_ROLE, self._remote.get_caller_user_role, retry=False
        )

    async def profile(self) -> Option[UserProfile]:
        return await self._cache.fetch(keys.CALLER_PROFILE, self._fetch_profile, retry=False)

    async def account_type(self) -> Option[AccountType]:
        profile = await self.profile()
        if isinstance(profile, Present):
            return Present(profile.value.account_type)
        return profile

    async def _fetch_profile(self) -> Option[UserProfile]:
        return option(await self._remote.get_caller_user_profile())

    def admin_entry(self) -> CacheEntry | None:
        return self._cache.get(keys.ADMIN_FLAG)

    def profile_entry(self) -> CacheEntry | None:
        return self._cache.get(keys.CALLER_PROFILE)
