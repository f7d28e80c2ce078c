"""
Cached reads of internships, category counts and submissions.

Internship reads need a signed-in caller: without one they stay disabled and
return an empty list without touching the cache or the network. Category
counts are public.
"""

from __future__ import annotations

from . import keys
from .backend import RemoteService
from .cache import QueryCache
from .session import SessionStore
from .types import CategoryCount, CompanySubmission, ContactFormSubmission, Internship


class Queries:
    """Read side of the remote contract, backed by QueryCache."""

    def __init__(self, cache: QueryCache, remote: RemoteService, session: SessionStore) -> None:
        self._cache = cache
        self._remote = remote
        self._session = session

    async def internships(self) -> list[Internship]:
        if self._session.current_identity() is None:
            return []
        return await self._cache.fetch(keys.INTERNSHIPS, self._remote.get_internships)

    async def internships_by_category(self, category: str) -> list[Internship]:
        if not category or self._session.current_identity() is None:
            return []

        async def fetch() -> list[Internship]:
            return await self._remote.get_internships_by_category(category)

        return await self._cache.fetch(keys.internships_by_category(category), fetch)

    async def category_counts(self) -> list[CategoryCount]:
        return await self._cache.fetch(keys.CATEGORY_COUNTS, self._remote.get_category_counts)

    async def company_submissions(self) -> list[CompanySubmission]:
        """Admin-gated by the remote authority; retry disabled so a denial surfaces."""
        return await self._cache.fetch(
            keys.COMPANY_SUBMISSIONS, self._remote.get_all_company_submissions, retry=False
        )

    async def contact_submissions(self) -> list[ContactFormSubmission]:
        return await self._cache.fetch(
            keys.CONTACT_SUBMISSIONS, self._remote.get_all_contact_form_submissions
        )
