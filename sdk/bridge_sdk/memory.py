"""
In-process remote authority, identity provider and content storage.

InMemoryAuthority holds the server-side state and enforces the same
authorization rules as the deployed authority:

    - Internship writes, role assignment and submission listings: admin only
    - Internship reads, profile writes, company surveys: signed-in callers
    - Category counts and the contact form: anyone

InMemoryBackend binds the authority to a caller (usually the identity
provider's current identity) and implements RemoteService. The dev server
uses the authority directly, passing the caller from each request.

Rejections are raised as TransportError with the provider's "Uncaught Error: "
prefix so that callers exercise the same message stripping as in production.
"""

from __future__ import annotations

import asyncio
import hashlib
import itertools
import logging
import time
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .backend import IdentityProvider, ProgressSink
from .errors import ContentReadError, SessionDesyncError, SessionError, TransportError
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

logger = logging.getLogger(__name__)

LOCATOR_PREFIX = "memory://blob/"

IdentitySource = Callable[[], "Identity | None"]


def _reject(operation: str, reason: str, status_code: int = 403) -> TransportError:
    return TransportError(f"Uncaught Error: {reason}", operation=operation, status_code=status_code)


class InMemoryContentStorage:
    """Content-addressed byte storage.

    Locators have the form memory://blob/<sha256>.
    """

    def __init__(self, chunk_size: int = 64 * 1024) -> None:
        self._chunk_size = chunk_size
        self._blobs: dict[str, bytes] = {}

    def __len__(self) -> int:
        return len(self._blobs)

    async def put(self, data: bytes, progress: ProgressSink | None = None) -> str:
        total = len(data)
        for offset in range(0, total, self._chunk_size):
            # Yield between chunks like a real upload would
            await asyncio.sleep(0)
            if progress and total:
                progress(min(total, offset + self._chunk_size) * 100 // total)
        digest = hashlib.sha256(data).hexdigest()
        self._blobs[digest] = bytes(data)
        return LOCATOR_PREFIX + digest

    async def get(self, locator: str) -> bytes:
        digest = locator.rsplit("/", 1)[-1]
        try:
            return self._blobs[digest]
        except KeyError:
            raise ContentReadError(f"Unknown blob: {locator}") from None


@dataclass
class _State:
    internships: dict[int, Internship] = field(default_factory=dict)
    profiles: dict[Identity, UserProfile] = field(default_factory=dict)
    roles: dict[Identity, Role] = field(default_factory=dict)
    contact_submissions: list[ContactFormSubmission] = field(default_factory=list)
    company_submissions: list[CompanySubmission] = field(default_factory=list)


class InMemoryAuthority:
    """Server-side state and rules of the remote authority.

    Args:
        admins: Identities that start as admins
        pending_admins: Identities promoted to admin by promote_admin_users()
        storage: Where submitted documents are stored
    """

    def __init__(
        self,
        admins: Iterable[Identity] = (),
        pending_admins: Iterable[Identity] = (),
        storage: InMemoryContentStorage | None = None,
    ) -> None:
        self.storage = storage or InMemoryContentStorage()
        self.pending_admins = list(pending_admins)
        self._state = _State()
        self._ids = itertools.count(1)
        self._submission_ids = itertools.count(1)
        for identity in admins:
            self._state.roles[identity] = Role.ADMIN

    # ── Authorization ────────────────────────────────────────────────────

    def role_of(self, caller: Identity | None) -> Role:
        if caller is None:
            return Role.GUEST
        return self._state.roles.get(caller, Role.USER)

    def _require_user(self, caller: Identity | None, operation: str) -> Identity:
        if caller is None:
            raise _reject(operation, "Unauthorized: Only users can perform this action")
        return caller

    def _require_admin(self, caller: Identity | None, operation: str) -> Identity:
        if self.role_of(caller) is not Role.ADMIN:
            raise _reject(operation, "Unauthorized: Only admins can perform this action")
        return caller  # type: ignore[return-value]

    # ── Internships ──────────────────────────────────────────────────────

    def add_internship(self, caller: Identity | None, data: InternshipInput) -> int:
        self._require_admin(caller, "add_internship")
        internship_id = next(self._ids)
        self._state.internships[internship_id] = Internship.from_input(internship_id, data)
        return internship_id

    def update_internship(
        self, caller: Identity | None, internship_id: int, data: InternshipInput
    ) -> None:
        self._require_admin(caller, "update_internship")
        if internship_id not in self._state.internships:
            raise _reject("update_internship", "Internship not found", status_code=404)
        self._state.internships[internship_id] = Internship.from_input(internship_id, data)

    def delete_internship(self, caller: Identity | None, internship_id: int) -> None:
        self._require_admin(caller, "delete_internship")
        if self._state.internships.pop(internship_id, None) is None:
            raise _reject("delete_internship", "Internship not found", status_code=404)

    def get_internship(self, caller: Identity | None, internship_id: int) -> Internship | None:
        self._require_user(caller, "get_internship")
        return self._state.internships.get(internship_id)

    def get_internships(self, caller: Identity | None) -> list[Internship]:
        self._require_user(caller, "get_internships")
        return list(self._state.internships.values())

    def get_internships_by_category(self, caller: Identity | None, category: str) -> list[Internship]:
        self._require_user(caller, "get_internships_by_category")
        return [i for i in self._state.internships.values() if i.category == category]

    def get_category_counts(self, caller: Identity | None) -> list[CategoryCount]:
        counts: dict[str, int] = {}
        for internship in self._state.internships.values():
            counts[internship.category] = counts.get(internship.category, 0) + 1
        return [CategoryCount(category, count) for category, count in counts.items()]

    # ── Profiles and roles ───────────────────────────────────────────────

    def get_caller_user_profile(self, caller: Identity | None) -> UserProfile | None:
        if caller is None:
            return None
        return self._state.profiles.get(caller)

    def get_user_profile(self, caller: Identity | None, identity: Identity) -> UserProfile | None:
        if caller != identity:
            self._require_admin(caller, "get_user_profile")
        return self._state.profiles.get(identity)

    def save_caller_user_profile(self, caller: Identity | None, profile: UserProfile) -> None:
        user = self._require_user(caller, "save_caller_user_profile")
        self._state.profiles[user] = profile

    def get_caller_user_role(self, caller: Identity | None) -> Role:
        return self.role_of(caller)

    def is_caller_admin(self, caller: Identity | None) -> bool:
        return self.role_of(caller) is Role.ADMIN

    def assign_caller_user_role(self, caller: Identity | None, identity: Identity, role: Role) -> None:
        self._require_admin(caller, "assign_caller_user_role")
        self._state.roles[identity] = role

    def promote_admin_users(self, caller: Identity | None) -> int:
        """Promote every pending admin. Returns how many were promoted."""
        self._require_user(caller, "promote_admin_users")
        promoted = 0
        for identity in self.pending_admins:
            if self.role_of(identity) is not Role.ADMIN:
                self._state.roles[identity] = Role.ADMIN
                promoted += 1
        if promoted:
            logger.info(f"Promoted {promoted} pending admin(s)")
        return promoted

    # ── Submissions ──────────────────────────────────────────────────────

    def submit_contact_form(self, caller: Identity | None, data: ContactFormInput) -> None:
        self._state.contact_submissions.append(
            ContactFormSubmission(
                name=data.name,
                email=data.email,
                message=data.message,
                submitted_at=time.time_ns(),
            )
        )

    async def submit_company_survey(
        self, caller: Identity | None, data: CompanySubmissionInput
    ) -> int:
        user = self._require_user(caller, "submit_company_survey")
        documents = []
        for handle in data.legal_documents:
            if handle.direct_url is None:
                handle = await handle.upload(self.storage)
            documents.append(handle)

        submission_id = next(self._submission_ids)
        self._state.company_submissions.append(
            CompanySubmission(
                id=submission_id,
                company_name=data.company_name,
                contact_person=data.contact_person,
                email=data.email,
                internship_details=data.internship_details,
                partnership_interest=data.partnership_interest,
                additional_comments=data.additional_comments,
                submitted_by=user.principal,
                submitted_at=time.time_ns(),
                legal_documents=tuple(documents),
            )
        )
        return submission_id

    def get_all_company_submissions(self, caller: Identity | None) -> list[CompanySubmission]:
        self._require_admin(caller, "get_all_company_submissions")
        return list(self._state.company_submissions)

    def get_all_contact_form_submissions(
        self, caller: Identity | None
    ) -> list[ContactFormSubmission]:
        self._require_admin(caller, "get_all_contact_form_submissions")
        return list(self._state.contact_submissions)


class InMemoryBackend:
    """RemoteService over an InMemoryAuthority, acting as one caller.

    Example:
        >>> provider = InMemoryIdentityProvider("admin-1")
        >>> backend = InMemoryBackend(InMemoryAuthority(admins=[Identity("admin-1")]), provider)
    """

    def __init__(
        self,
        authority: InMemoryAuthority | None = None,
        caller: IdentityProvider | IdentitySource | None = None,
    ) -> None:
        self.authority = authority or InMemoryAuthority()
        if isinstance(caller, IdentityProvider):
            provider = caller
            self._caller: IdentitySource = lambda: provider.identity
        else:
            self._caller = caller or (lambda: None)
        self.calls: list[str] = []

    @property
    def caller(self) -> Identity | None:
        return self._caller()

    def _record(self, operation: str) -> Identity | None:
        self.calls.append(operation)
        return self._caller()

    async def add_internship(self, data: InternshipInput) -> int:
        return self.authority.add_internship(self._record("add_internship"), data)

    async def update_internship(self, internship_id: int, data: InternshipInput) -> None:
        self.authority.update_internship(self._record("update_internship"), internship_id, data)

    async def delete_internship(self, internship_id: int) -> None:
        self.authority.delete_internship(self._record("delete_internship"), internship_id)

    async def get_internship(self, internship_id: int) -> Internship | None:
        return self.authority.get_internship(self._record("get_internship"), internship_id)

    async def get_internships(self) -> list[Internship]:
        return self.authority.get_internships(self._record("get_internships"))

    async def get_internships_by_category(self, category: str) -> list[Internship]:
        return self.authority.get_internships_by_category(
            self._record("get_internships_by_category"), category
        )

    async def get_category_counts(self) -> list[CategoryCount]:
        return self.authority.get_category_counts(self._record("get_category_counts"))

    async def get_caller_user_profile(self) -> UserProfile | None:
        return self.authority.get_caller_user_profile(self._record("get_caller_user_profile"))

    async def get_user_profile(self, identity: Identity) -> UserProfile | None:
        return self.authority.get_user_profile(self._record("get_user_profile"), identity)

    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        self.authority.save_caller_user_profile(self._record("save_caller_user_profile"), profile)

    async def get_caller_user_role(self) -> Role:
        return self.authority.get_caller_user_role(self._record("get_caller_user_role"))

    async def is_caller_admin(self) -> bool:
        return self.authority.is_caller_admin(self._record("is_caller_admin"))

    async def assign_caller_user_role(self, identity: Identity, role: Role) -> None:
        self.authority.assign_caller_user_role(
            self._record("assign_caller_user_role"), identity, role
        )

    async def promote_admin_users(self) -> int:
        return self.authority.promote_admin_users(self._record("promote_admin_users"))

    async def submit_contact_form(self, data: ContactFormInput) -> None:
        self.authority.submit_contact_form(self._record("submit_contact_form"), data)

    async def submit_company_survey(self, data: CompanySubmissionInput) -> int:
        return await self.authority.submit_company_survey(
            self._record("submit_company_survey"), data
        )

    async def get_all_company_submissions(self) -> list[CompanySubmission]:
        return self.authority.get_all_company_submissions(
            self._record("get_all_company_submissions")
        )

    async def get_all_contact_form_submissions(self) -> list[ContactFormSubmission]:
        return self.authority.get_all_contact_form_submissions(
            self._record("get_all_contact_form_submissions")
        )


class InMemoryIdentityProvider:
    """Scriptable identity provider.

    Args:
        principal: Principal issued on sign-in (random if omitted)
        stale_session: Start with a provider-side session that is not exposed
            as an identity, so the first establish_session() reports
            "already authenticated"
        failures: Exceptions raised by the next establish_session() calls,
            in order
    """

    def __init__(
        self,
        principal: str | None = None,
        *,
        stale_session: bool = False,
        failures: Iterable[BaseException] = (),
    ) -> None:
        self.principal = principal or f"user-{uuid.uuid4().hex[:12]}"
        self._active = stale_session
        self._identity: Identity | None = None
        self._failures = list(failures)
        self.establish_calls = 0
        self.clear_calls = 0

    @property
    def identity(self) -> Identity | None:
        return self._identity

    async def establish_session(self) -> Identity:
        self.establish_calls += 1
        await asyncio.sleep(0)
        if self._failures:
            raise self._failures.pop(0)
        if self._active:
            raise SessionDesyncError()
        self._active = True
        self._identity = Identity(self.principal)
        return self._identity

    async def clear_session(self) -> None:
        self.clear_calls += 1
        self._active = False
        self._identity = None

    def fail_next(self, error: BaseException | None = None) -> None:
        """Make the next establish_session() raise error."""
        self._failures.append(error or SessionError("Identity provider unavailable"))


__all__ = [
    "InMemoryAuthority",
    "InMemoryBackend",
    "InMemoryContentStorage",
    "InMemoryIdentityProvider",
]
