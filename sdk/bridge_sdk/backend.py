"""
Collaborator contracts consumed by the SDK.

- RemoteService: the remote authority's request/response operations
- IdentityProvider: sign-in handshake and current identity
- ContentStorage: raw byte storage returning retrieval locators

Implementations: HttpBackend (_http_client.py) talks to a deployed authority;
memory.py provides in-process fakes for tests and local development.

Invariants:
    - Every RemoteService call either resolves or raises TransportError
    - IdentityProvider.establish_session raises SessionDesyncError when the
      provider already holds a session
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from .types import (
    CategoryCount,
    CompanySubmission,
    CompanySubmissionInput,
    ContactFormInput,
    ContactFormSubmission,
    Identity,
    Internship,
    InternshipInput,
    Role,
    UserProfile,
)

ProgressSink = Callable[[int], None]


@runtime_checkable
class RemoteService(Protocol):
    """Remote authority operations, called on behalf of the current caller."""

    async def add_internship(self, data: InternshipInput) -> int: ...

    async def update_internship(self, internship_id: int, data: InternshipInput) -> None: ...

    async def delete_internship(self, internship_id: int) -> None: ...

    async def get_internship(self, internship_id: int) -> Internship | None: ...

    async def get_internships(self) -> list[Internship]: ...

    async def get_internships_by_category(self, category: str) -> list[Internship]: ...

    async def get_category_counts(self) -> list[CategoryCount]: ...

    async def get_caller_user_profile(self) -> UserProfile | None: ...

    async def get_user_profile(self, identity: Identity) -> UserProfile | None: ...

    async def save_caller_user_profile(self, profile: UserProfile) -> None: ...

    async def get_caller_user_role(self) -> Role: ...

    async def is_caller_admin(self) -> bool: ...

    async def assign_caller_user_role(self, identity: Identity, role: Role) -> None: ...

    async def promote_admin_users(self) -> int: ...

    async def submit_contact_form(self, data: ContactFormInput) -> None: ...

    async def submit_company_survey(self, data: CompanySubmissionInput) -> int: ...

    async def get_all_company_submissions(self) -> list[CompanySubmission]: ...

    async def get_all_contact_form_submissions(self) -> list[ContactFormSubmission]: ...


@runtime_checkable
class IdentityProvider(Protocol):
    """External identity provider."""

    @property
    def identity(self) -> Identity | None: ...

    async def establish_session(self) -> Identity: ...

    async def clear_session(self) -> None: ...


@runtime_checkable
class ContentStorage(Protocol):
    """Raw byte storage."""

    async def put(self, data: bytes, progress: ProgressSink | None = None) -> str:
        """Store bytes and return a direct retrieval locator."""
        ...

    async def get(self, locator: str) -> bytes: ...
