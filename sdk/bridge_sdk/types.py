"""
Domain records exchanged with the remote authority.

Records are plain dataclasses. Each knows how to convert itself to and from the
wire form (camelCase keys, integer ids) so transports stay thin.

Invariants:
    - Internship.id is assigned by the server and never reused or mutated
    - Submissions are append-only
    - Optional remote values are represented with Present/Absent, never None
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

if TYPE_CHECKING:
    from .backend import ContentStorage
    from .blobs import ContentHandle

T = TypeVar("T")


@dataclass(frozen=True)
class Present(Generic[T]):
    """A remote optional value that is present."""

    value: T


@dataclass(frozen=True)
class Absent:
    """A remote optional value that is absent."""


ABSENT = Absent()

Option = Union[Present[T], Absent]


def option(value: T | None) -> Option[T]:
    """Wrap a nullable value as Present/Absent."""
    return ABSENT if value is None else Present(value)


class AccountType(Enum):
    """Account type chosen during profile setup."""

    STUDENT = "student"
    COMPANY = "company"


class Role(Enum):
    """Server-authoritative caller role."""

    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


@dataclass(frozen=True)
class Identity:
    """Opaque caller handle issued by the identity provider.

    Attributes:
        principal: Provider-issued principal text
    """

    principal: str

    def __str__(self) -> str:
        return self.principal


@dataclass(frozen=True)
class UserProfile:
    """Caller-chosen profile, exactly one per identity."""

    name: str
    email: str
    account_type: AccountType

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "accountType": self.account_type.value,
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> UserProfile:
        return cls(
            name=data["name"],
            email=data["email"],
            account_type=AccountType(data["accountType"]),
        )


@dataclass(frozen=True)
class InternshipInput:
    """Writable fields of an internship posting."""

    title: str
    description: str
    company: str
    category: str
    location: str
    application_link: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "company": self.company,
            "category": self.category,
            "location": self.location,
            "applicationLink": self.application_link,
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> InternshipInput:
        return cls(
            title=data["title"],
            description=data["description"],
            company=data["company"],
            category=data["category"],
            location=data["location"],
            application_link=data["applicationLink"],
        )


@dataclass(frozen=True)
class Internship:
    """An internship posting.

    Attributes:
        id: Server-assigned identifier, the sole identity key
    """

    id: int
    title: str
    description: str
    company: str
    category: str
    location: str
    application_link: str

    @classmethod
    def from_input(cls, internship_id: int, data: InternshipInput) -> Internship:
        return cls(
            id=internship_id,
            title=data.title,
            description=data.description,
            company=data.company,
            category=data.category,
            location=data.location,
            application_link=data.application_link,
        )

    def to_input(self) -> InternshipInput:
        return InternshipInput(
            title=self.title,
            description=self.description,
            company=self.company,
            category=self.category,
            location=self.location,
            application_link=self.application_link,
        )

    def to_wire(self) -> dict[str, Any]:
        return {"id": self.id, **self.to_input().to_wire()}

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Internship:
        return cls.from_input(int(data["id"]), InternshipInput.from_wire(data))


@dataclass(frozen=True)
class CategoryCount:
    """Number of postings in one category (read-only aggregate)."""

    category: str
    count: int

    def to_wire(self) -> dict[str, Any]:
        return {"category": self.category, "count": self.count}

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> CategoryCount:
        return cls(category=data["category"], count=int(data["count"]))


@dataclass(frozen=True)
class ContactFormInput:
    name: str
    email: str
    message: str

    def to_wire(self) -> dict[str, Any]:
        return {"name": self.name, "email": self.email, "message": self.message}


@dataclass(frozen=True)
class ContactFormSubmission:
    name: str
    email: str
    message: str
    submitted_at: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "message": self.message,
            "submittedAt": self.submitted_at,
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> ContactFormSubmission:
        return cls(
            name=data["name"],
            email=data["email"],
            message=data["message"],
            submitted_at=int(data["submittedAt"]),
        )


@dataclass(frozen=True)
class CompanySubmissionInput:
    """Company survey as submitted; documents are ingested content handles."""

    company_name: str
    contact_person: str
    email: str
    internship_details: str
    partnership_interest: bool
    additional_comments: str
    legal_documents: tuple[ContentHandle, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        """Wire form. Documents must already be stored (they travel as locators)."""
        return {
            "companyName": self.company_name,
            "contactPerson": self.contact_person,
            "email": self.email,
            "internshipDetails": self.internship_details,
            "partnershipInterest": self.partnership_interest,
            "additionalComments": self.additional_comments,
            "legalDocuments": [doc.direct_url for doc in self.legal_documents],
        }

    @classmethod
    def from_wire(
        cls, data: dict[str, Any], storage: ContentStorage | None = None
    ) -> CompanySubmissionInput:
        from .blobs import ContentHandle

        return cls(
            company_name=data["companyName"],
            contact_person=data["contactPerson"],
            email=data["email"],
            internship_details=data["internshipDetails"],
            partnership_interest=bool(data["partnershipInterest"]),
            additional_comments=data["additionalComments"],
            legal_documents=tuple(
                ContentHandle.from_locator(locator, storage)
                for locator in data.get("legalDocuments", [])
            ),
        )


@dataclass(frozen=True)
class CompanySubmission:
    """Stored company survey.

    Attributes:
        legal_documents: Handles able to yield the stored bytes or a locator
        submitted_by: Principal of the submitting caller
        submitted_at: Submission time (Unix ns, as issued by the authority)
    """

    id: int
    company_name: str
    contact_person: str
    email: str
    internship_details: str
    partnership_interest: bool
    additional_comments: str
    submitted_by: str
    submitted_at: int
    legal_documents: tuple[ContentHandle, ...] = field(default=())

    def to_wire(self) -> dict[str, Any]:
        """Wire form. Documents must already be stored (they travel as locators)."""
        return {
            "id": self.id,
            "companyName": self.company_name,
            "contactPerson": self.contact_person,
            "email": self.email,
            "internshipDetails": self.internship_details,
            "partnershipInterest": self.partnership_interest,
            "additionalComments": self.additional_comments,
            "submittedBy": self.submitted_by,
            "submittedAt": self.submitted_at,
            "legalDocuments": [doc.direct_url for doc in self.legal_documents],
        }

    @classmethod
    def from_wire(
        cls, data: dict[str, Any], storage: ContentStorage | None = None
    ) -> CompanySubmission:
        from .blobs import ContentHandle

        return cls(
            id=int(data["id"]),
            company_name=data["companyName"],
            contact_person=data["contactPerson"],
            email=data["email"],
            internship_details=data["internshipDetails"],
            partnership_interest=bool(data["partnershipInterest"]),
            additional_comments=data["additionalComments"],
            submitted_by=data["submittedBy"],
            submitted_at=int(data["submittedAt"]),
            legal_documents=tuple(
                ContentHandle.from_locator(locator, storage)
                for locator in data.get("legalDocuments", [])
            ),
        )


@dataclass(frozen=True)
class SeedResult:
    """Outcome of one seeding run. All counts are non-negative."""

    added: int = 0
    skipped: int = 0
    failed: int = 0
