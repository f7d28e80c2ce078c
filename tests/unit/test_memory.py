"""
Unit tests for the in-memory authority.

Tests cover:
- Authorization rules per operation
- Role derivation and admin promotion
- Submissions and stored documents
"""

import pytest

from sdk.bridge_sdk.blobs import ContentHandle
from sdk.bridge_sdk.errors import TransportError
from sdk.bridge_sdk.memory import InMemoryAuthority, InMemoryBackend, InMemoryIdentityProvider
from sdk.bridge_sdk.types import (
    AccountType,
    CategoryCount,
    CompanySubmissionInput,
    ContactFormInput,
    Identity,
    InternshipInput,
    Role,
    UserProfile,
)

ADMIN = Identity("admin-1")
ADA = Identity("ada")

POSTING = InternshipInput("Intern", "Desc", "Acme", "Tech", "Remote", "https://acme.example")


@pytest.fixture
def authority():
    return InMemoryAuthority(admins=[ADMIN])


class TestAuthorization:
    """Tests for per-operation caller rules."""

    def test_admin_adds_internship(self, authority):
        first = authority.add_internship(ADMIN, POSTING)
        second = authority.add_internship(ADMIN, POSTING)

        assert (first, second) == (1, 2)
        assert [i.id for i in authority.get_internships(ADA)] == [1, 2]

    @pytest.mark.parametrize("caller", [ADA, None])
    def test_non_admin_cannot_write(self, authority, caller):
        with pytest.raises(TransportError) as exc_info:
            authority.add_internship(caller, POSTING)

        assert exc_info.value.status_code == 403
        assert exc_info.value.display_message.startswith("Unauthorized")

    def test_missing_internship(self, authority):
        with pytest.raises(TransportError) as exc_info:
            authority.delete_internship(ADMIN, 99)

        assert exc_info.value.status_code == 404
        assert exc_info.value.display_message == "Internship not found"

    def test_anonymous_cannot_list(self, authority):
        with pytest.raises(TransportError):
            authority.get_internships(None)

    def test_category_counts_are_public(self, authority):
        authority.add_internship(ADMIN, POSTING)
        authority.add_internship(ADMIN, POSTING)

        assert authority.get_category_counts(None) == [CategoryCount("Tech", 2)]

    def test_profile_of_other_user_needs_admin(self, authority):
        profile = UserProfile("Ada", "ada@example.com", AccountType.STUDENT)
        authority.save_caller_user_profile(ADA, profile)

        assert authority.get_user_profile(ADA, ADA) == profile
        assert authority.get_user_profile(ADMIN, ADA) == profile
        with pytest.raises(TransportError):
            authority.get_user_profile(Identity("bob"), ADA)

    def test_anonymous_profile_read_is_none(self, authority):
        assert authority.get_caller_user_profile(None) is None


class TestRoles:
    def test_role_of(self, authority):
        assert authority.role_of(None) is Role.GUEST
        assert authority.role_of(ADA) is Role.USER
        assert authority.role_of(ADMIN) is Role.ADMIN

    def test_promote_pending_admins_once(self):
        authority = InMemoryAuthority(pending_admins=[ADA, ADMIN], admins=[ADMIN])

        assert authority.promote_admin_users(ADA) == 1
        assert authority.promote_admin_users(ADA) == 0
        assert authority.is_caller_admin(ADA)

    def test_assign_role_requires_admin(self, authority):
        with pytest.raises(TransportError):
            authority.assign_caller_user_role(ADA, ADA, Role.ADMIN)

        authority.assign_caller_user_role(ADMIN, ADA, Role.ADMIN)

        assert authority.get_caller_user_role(ADA) is Role.ADMIN


class TestSubmissions:
    def test_contact_form_is_public_and_listed_for_admins(self, authority):
        authority.submit_contact_form(None, ContactFormInput("Ada", "ada@example.com", "Hi"))

        listed = authority.get_all_contact_form_submissions(ADMIN)

        assert [s.message for s in listed] == ["Hi"]
        assert listed[0].submitted_at > 0
        with pytest.raises(TransportError):
            authority.get_all_contact_form_submissions(ADA)

    @pytest.mark.asyncio
    async def test_company_survey_stores_documents(self, authority):
        survey = CompanySubmissionInput(
            company_name="Acme",
            contact_person="Jo",
            email="jo@acme.example",
            internship_details="Industry: Technology",
            partnership_interest=True,
            additional_comments="None",
            legal_documents=(ContentHandle.from_bytes(b"%PDF-1.4"),),
        )

        submission_id = await authority.submit_company_survey(ADA, survey)
        [stored] = authority.get_all_company_submissions(ADMIN)

        assert stored.id == submission_id
        assert stored.submitted_by == "ada"
        assert len(authority.storage) == 1
        assert stored.legal_documents[0].direct_url is not None
        assert await stored.legal_documents[0].get_bytes() == b"%PDF-1.4"

    @pytest.mark.asyncio
    async def test_anonymous_survey_rejected(self, authority):
        survey = CompanySubmissionInput("Acme", "Jo", "jo@acme.example", "", False, "")

        with pytest.raises(TransportError):
            await authority.submit_company_survey(None, survey)


class TestInMemoryBackend:
    @pytest.mark.asyncio
    async def test_acts_as_provider_identity(self, authority):
        provider = InMemoryIdentityProvider("admin-1")
        backend = InMemoryBackend(authority, caller=provider)

        assert await backend.is_caller_admin() is False
        await provider.establish_session()

        assert await backend.is_caller_admin() is True
        assert backend.calls == ["is_caller_admin", "is_caller_admin"]
