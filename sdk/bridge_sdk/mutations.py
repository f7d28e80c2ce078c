"""
Remote writes and their cache invalidation.

Every write has a fixed row in INVALIDATIONS. After a successful write the
coordinator invalidates exactly the keys in that row and nothing else; a
failed write invalidates nothing.

Invariants:
    - Forms are validated locally before any remote call
    - No mutation invalidates a key outside its row
    - Every outcome is reported on the notification channel; remote failures
      are re-raised as TransportError after being reported

How to change safely:
    - New writes need a new Mutation member and a row in INVALIDATIONS
    - Widen a row only when a cached read really depends on the write
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

from . import keys
from .backend import RemoteService
from .blobs import ContentHandle
from .cache import CacheKey, QueryCache
from .config import Settings
from .errors import BridgeError, TransportError, strip_provider_prefix
from .notifications import Notifier
from .types import (
    CompanySubmissionInput,
    ContactFormInput,
    Identity,
    InternshipInput,
    Role,
    UserProfile,
)
from .validate import (
    ProfileForm,
    SurveyForm,
    build_internship_input,
    build_profile,
    build_survey_submission,
    check_contact_form,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Mutation(Enum):
    ADD_INTERNSHIP = "add_internship"
    UPDATE_INTERNSHIP = "update_internship"
    DELETE_INTERNSHIP = "delete_internship"
    SEED_INTERNSHIPS = "seed_internships"
    SAVE_PROFILE = "save_profile"
    SUBMIT_CONTACT_FORM = "submit_contact_form"
    SUBMIT_COMPANY_SURVEY = "submit_company_survey"
    PROMOTE_ADMINS = "promote_admins"
    ASSIGN_ROLE = "assign_role"


# INTERNSHIPS is a prefix: it also covers every per-category list.
_INTERNSHIP_READS: tuple[CacheKey, ...] = (keys.INTERNSHIPS, keys.CATEGORY_COUNTS)

INVALIDATIONS: dict[Mutation, tuple[CacheKey, ...]] = {
    Mutation.ADD_INTERNSHIP: _INTERNSHIP_READS,
    Mutation.UPDATE_INTERNSHIP: _INTERNSHIP_READS,
    Mutation.DELETE_INTERNSHIP: _INTERNSHIP_READS,
    Mutation.SEED_INTERNSHIPS: _INTERNSHIP_READS,
    Mutation.SAVE_PROFILE: (keys.CALLER_PROFILE,),
    Mutation.SUBMIT_CONTACT_FORM: (),
    Mutation.SUBMIT_COMPANY_SURVEY: (),
    # Any role may have changed
    Mutation.PROMOTE_ADMINS: (keys.ADMIN_FLAG,),
    Mutation.ASSIGN_ROLE: (keys.ADMIN_FLAG, keys.CALLER_ROLE),
}


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


class MutationCoordinator:
    """Executes remote writes and applies the invalidation table.

    Example:
        >>> new_id = await coordinator.add_internship(InternshipInput(...))
        >>> # ("internships", ...) and ("categoryCounts",) are now stale
    """

    def __init__(
        self,
        cache: QueryCache,
        remote: RemoteService,
        notifier: Notifier,
        settings: Settings | None = None,
    ) -> None:
        self._cache = cache
        self._remote = remote
        self._notifier = notifier
        self._settings = settings or Settings()

    @property
    def remote(self) -> RemoteService:
        return self._remote

    def apply_invalidation(self, mutation: Mutation) -> list[CacheKey]:
        """Invalidate the keys in mutation's row. Returns the keys marked stale."""
        stale: list[CacheKey] = []
        for prefix in INVALIDATIONS[mutation]:
            stale.extend(self._cache.invalidate(prefix))
        return stale

    async def _execute(
        self,
        mutation: Mutation,
        call: Callable[[], Awaitable[T]],
        failure: str,
        on_success: Callable[[T], Any],
    ) -> T:
        try:
            result = await call()
        except Exception as e:
            message = strip_provider_prefix(str(e))
            logger.error(f"{mutation.value} failed: {e}")
            self._notifier.error(f"{failure}: {message}")
            if isinstance(e, BridgeError):
                raise
            raise TransportError(str(e), operation=mutation.value) from e

        self.apply_invalidation(mutation)
        on_success(result)
        return result

    # ── Internships ──────────────────────────────────────────────────────

    async def add_internship(self, data: InternshipInput) -> int:
        """Create a posting. Returns the server-assigned id.

        Raises:
            ValidationError: If a required field is blank
            TransportError: If the remote call fails
        """
        data = build_internship_input(data)
        return await self._execute(
            Mutation.ADD_INTERNSHIP,
            lambda: self._remote.add_internship(data),
            "Failed to add internship",
            lambda _: self._notifier.success("Internship added successfully"),
        )

    async def update_internship(self, internship_id: int, data: InternshipInput) -> None:
        data = build_internship_input(data)
        await self._execute(
            Mutation.UPDATE_INTERNSHIP,
            lambda: self._remote.update_internship(internship_id, data),
            "Failed to update internship",
            lambda _: self._notifier.success("Internship updated successfully"),
        )

    async def delete_internship(self, internship_id: int) -> None:
        await self._execute(
            Mutation.DELETE_INTERNSHIP,
            lambda: self._remote.delete_internship(internship_id),
            "Failed to delete internship",
            lambda _: self._notifier.success("Internship deleted successfully"),
        )

    # ── Profile and roles ────────────────────────────────────────────────

    async def save_profile(self, profile: UserProfile | ProfileForm) -> None:
        if isinstance(profile, ProfileForm):
            profile = build_profile(profile, self._settings.school_email_domain)
        saved = profile
        await self._execute(
            Mutation.SAVE_PROFILE,
            lambda: self._remote.save_caller_user_profile(saved),
            "Failed to save profile",
            lambda _: self._notifier.success("Profile saved successfully"),
        )

    async def promote_admin_users(self) -> int:
        """Promote pending admins. Returns how many were promoted."""

        def report(count: int) -> None:
            if count > 0:
                self._notifier.success(f"Successfully promoted {_plural(count, 'user')} to admin")
            else:
                self._notifier.info("No pending admin promotions found")

        return await self._execute(
            Mutation.PROMOTE_ADMINS,
            self._remote.promote_admin_users,
            "Failed to promote admins",
            report,
        )

    async def assign_role(self, identity: Identity, role: Role) -> None:
        await self._execute(
            Mutation.ASSIGN_ROLE,
            lambda: self._remote.assign_caller_user_role(identity, role),
            "Failed to assign role",
            lambda _: self._notifier.success(f"Assigned role {role.value} to {identity}"),
        )

    # ── Submissions ──────────────────────────────────────────────────────

    async def submit_contact_form(self, data: ContactFormInput) -> None:
        data = check_contact_form(data)
        await self._execute(
            Mutation.SUBMIT_CONTACT_FORM,
            lambda: self._remote.submit_contact_form(data),
            "Failed to send message",
            lambda _: self._notifier.success("Message sent successfully!"),
        )

    async def submit_company_survey(
        self,
        survey: SurveyForm | CompanySubmissionInput,
        documents: tuple[ContentHandle, ...] = (),
    ) -> int:
        """Submit a company survey. Returns the submission id.

        Args:
            survey: Raw survey form (validated and mapped here) or a prepared input
            documents: Completed document handles, used with a raw survey form
        """
        if isinstance(survey, SurveyForm):
            survey = build_survey_submission(survey, documents)
        submission = survey
        return await self._execute(
            Mutation.SUBMIT_COMPANY_SURVEY,
            lambda: self._remote.submit_company_survey(submission),
            "Failed to submit survey",
            lambda _: self._notifier.success("Survey submitted successfully!"),
        )
