"""
Local form validation for the Bridge SDK.

This module provides validation for every form that reaches the remote
authority:
- Profile setup
- Contact form
- Internship add/edit
- Company survey (and its mapping to a CompanySubmissionInput)

Invariants:
    - Validation runs before any remote call and never touches the network
    - Errors are reported per field, keyed by the form field name
    - Validation errors are deterministic
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .blobs import ContentHandle
from .errors import ValidationError
from .links import normalize_link
from .types import (
    AccountType,
    CompanySubmissionInput,
    ContactFormInput,
    InternshipInput,
    UserProfile,
)

FieldErrors = Dict[str, str]

DEFAULT_SCHOOL_DOMAIN = "@g.gcksp12.org"
NO_ADDITIONAL_COMMENTS = "No additional comments provided"


def _raise_if_any(form: str, errors: FieldErrors) -> None:
    if errors:
        raise ValidationError(
            f"Validation failed for {form}: {'; '.join(errors.values())}",
            field_errors=errors,
        )


# ── Profile ──────────────────────────────────────────────────────────────


@dataclass
class ProfileForm:
    """Raw profile setup input.

    Attributes:
        email_kind: "personal" or "school" (students only)
    """

    name: str = ""
    email: str = ""
    account_type: Optional[AccountType] = None
    email_kind: str = "personal"


def validate_profile(
    form: ProfileForm,
    school_domain: str = DEFAULT_SCHOOL_DOMAIN,
) -> Tuple[bool, FieldErrors]:
    """Validate profile setup input.

    Returns:
        Tuple of (is_valid, field_errors)
    """
    errors: FieldErrors = {}

    if not form.name.strip():
        errors["name"] = "Name is required"

    if form.account_type is None:
        errors["accountType"] = "Please select an account type"

    email = form.email.strip()
    if not email:
        errors["email"] = "Email is required"
    elif "@" not in email:
        errors["email"] = "Please enter a valid email address"
    elif form.account_type is AccountType.STUDENT and form.email_kind == "school":
        if not email.endswith(school_domain):
            errors["email"] = f"School email must end with {school_domain}"

    return len(errors) == 0, errors


def build_profile(form: ProfileForm, school_domain: str = DEFAULT_SCHOOL_DOMAIN) -> UserProfile:
    """Validate and convert profile input.

    Raises:
        ValidationError: If validation fails
    """
    _, errors = validate_profile(form, school_domain)
    _raise_if_any("profile", errors)
    account_type = form.account_type
    if account_type is None:
        raise ValidationError(
            "Validation failed for profile: Please select an account type",
            field_errors={"accountType": "Please select an account type"},
        )
    return UserProfile(
        name=form.name.strip(),
        email=form.email.strip(),
        account_type=account_type,
    )


# ── Contact form ─────────────────────────────────────────────────────────


def validate_contact_form(data: ContactFormInput) -> Tuple[bool, FieldErrors]:
    errors: FieldErrors = {}
    if not data.name.strip():
        errors["name"] = "Name is required"
    if not data.email.strip():
        errors["email"] = "Email is required"
    if not data.message.strip():
        errors["message"] = "Message is required"
    return len(errors) == 0, errors


def check_contact_form(data: ContactFormInput) -> ContactFormInput:
    _, errors = validate_contact_form(data)
    _raise_if_any("contact form", errors)
    return data


# ── Internship ───────────────────────────────────────────────────────────

_INTERNSHIP_FIELDS = (
    ("title", "title", "Title"),
    ("description", "description", "Description"),
    ("company", "company", "Company"),
    ("location", "location", "Location"),
    ("category", "category", "Category"),
    ("application_link", "applicationLink", "Application link"),
)


def validate_internship(data: InternshipInput) -> Tuple[bool, FieldErrors]:
    """Every internship field is required (after trimming)."""
    errors: FieldErrors = {}
    for attr, wire_name, label in _INTERNSHIP_FIELDS:
        if not getattr(data, attr).strip():
            errors[wire_name] = f"{label} is required"
    return len(errors) == 0, errors


def build_internship_input(data: InternshipInput) -> InternshipInput:
    """Validate an internship form and normalize its application link.

    Raises:
        ValidationError: If a required field is blank
    """
    _, errors = validate_internship(data)
    _raise_if_any("internship", errors)
    return InternshipInput(
        title=data.title,
        description=data.description,
        company=data.company,
        category=data.category,
        location=data.location,
        application_link=normalize_link(data.application_link),
    )


# ── Company survey ───────────────────────────────────────────────────────

OTHER = "Other"


@dataclass
class SurveyForm:
    """Raw company survey input."""

    business_name: str = ""
    contact_person: str = ""
    email_phone: str = ""
    industry_type: str = ""
    industry_type_other: str = ""
    aware_of_programs: str = ""
    internship_interest: str = ""
    help_types: List[str] = field(default_factory=list)
    help_types_other: str = ""
    number_of_interns: str = ""
    important_skills: str = ""
    suggestions: str = ""
    follow_up_contact: str = ""


def validate_survey(form: SurveyForm) -> Tuple[bool, FieldErrors]:
    """Validate company survey input.

    Returns:
        Tuple of (is_valid, field_errors)
    """
    errors: FieldErrors = {}

    if not form.business_name.strip():
        errors["businessName"] = "Business name is required"
    if not form.contact_person.strip():
        errors["contactPerson"] = "Contact person is required"
    if not form.email_phone.strip():
        errors["emailPhone"] = "Email/Phone is required"
    if not form.industry_type:
        errors["industryType"] = "Please select an industry type"
    if form.industry_type == OTHER and not form.industry_type_other.strip():
        errors["industryTypeOther"] = "Please specify the industry type"
    if not form.aware_of_programs:
        errors["awareOfPrograms"] = "Please answer this question"
    if not form.internship_interest:
        errors["internshipInterest"] = "Please answer this question"
    if not form.help_types:
        errors["helpTypes"] = "Please select at least one option"
    if OTHER in form.help_types and not form.help_types_other.strip():
        errors["helpTypesOther"] = "Please specify the type of help"
    if not form.number_of_interns:
        errors["numberOfInterns"] = "Please select an option"
    if not form.important_skills.strip():
        errors["importantSkills"] = "This field is required"
    if not form.follow_up_contact:
        errors["followUpContact"] = "Please answer this question"

    return len(errors) == 0, errors


def build_survey_submission(
    form: SurveyForm,
    documents: Tuple[ContentHandle, ...] = (),
) -> CompanySubmissionInput:
    """Validate a survey and map it to the submission the authority accepts.

    Args:
        form: Survey input
        documents: Handles of documents whose ingestion completed

    Raises:
        ValidationError: If validation fails
    """
    _, errors = validate_survey(form)
    _raise_if_any("company survey", errors)

    industry = (
        f"{OTHER}: {form.industry_type_other}" if form.industry_type == OTHER else form.industry_type
    )
    help_types = list(form.help_types)
    if OTHER in help_types:
        help_types = [t for t in help_types if t != OTHER] + [f"{OTHER}: {form.help_types_other}"]

    details = "\n".join(
        [
            f"Industry: {industry}",
            f"Aware of Programs: {form.aware_of_programs}",
            f"Internship Interest: {form.internship_interest}",
            f"Help Types: {', '.join(help_types)}",
            f"Number of Interns: {form.number_of_interns}",
            f"Important Skills: {form.important_skills}",
        ]
    )

    return CompanySubmissionInput(
        company_name=form.business_name,
        contact_person=form.contact_person,
        email=form.email_phone,
        internship_details=details,
        partnership_interest=form.follow_up_contact == "Yes",
        additional_comments=form.suggestions or NO_ADDITIONAL_COMMENTS,
        legal_documents=tuple(documents),
    )
