"""
RPC routes for the Bridge dev server.

Each remote operation is `POST /rpc/<operation>` answering {"result": ...}.
The caller is taken from the X-Actor header; requests without it run as an
anonymous caller. Blobs are stored with `POST /blobs` and read back with
`GET /blobs/{digest}`.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, Request, Response
from pydantic import BaseModel, Field

from sdk.bridge_sdk.memory import InMemoryAuthority
from sdk.bridge_sdk.types import (
    CompanySubmissionInput,
    ContactFormInput,
    Identity,
    InternshipInput,
    Role,
    UserProfile,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bridge RPC"])


# --- Request Models ---


class InternshipWire(BaseModel):
    title: str
    description: str
    company: str
    category: str
    location: str
    applicationLink: str


class AddInternshipRequest(BaseModel):
    input: InternshipWire


class UpdateInternshipRequest(BaseModel):
    id: int
    input: InternshipWire


class InternshipIdRequest(BaseModel):
    id: int


class CategoryRequest(BaseModel):
    category: str


class ProfileWire(BaseModel):
    name: str
    email: str
    accountType: str = Field(..., pattern="^(student|company)$")


class SaveProfileRequest(BaseModel):
    profile: ProfileWire


class UserRequest(BaseModel):
    user: str


class AssignRoleRequest(BaseModel):
    user: str
    role: Role


class ContactFormWire(BaseModel):
    name: str
    email: str
    message: str


class ContactFormRequest(BaseModel):
    input: ContactFormWire


class CompanySurveyWire(BaseModel):
    companyName: str
    contactPerson: str
    email: str
    internshipDetails: str
    partnershipInterest: bool
    additionalComments: str
    legalDocuments: list[str] = Field(default_factory=list, description="Stored blob locators")


class CompanySurveyRequest(BaseModel):
    input: CompanySurveyWire


# --- Dependencies ---


def get_authority(request: Request) -> InMemoryAuthority:
    return request.app.state.authority


def get_caller(x_actor: str | None = Header(None)) -> Identity | None:
    return Identity(x_actor) if x_actor else None


def _ok(result: Any = None) -> dict[str, Any]:
    return {"result": result}


# --- Internships ---


@router.post("/rpc/addInternship")
async def add_internship(
    body: AddInternshipRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    data = InternshipInput.from_wire(body.input.model_dump())
    return _ok(authority.add_internship(caller, data))


@router.post("/rpc/updateInternship")
async def update_internship(
    body: UpdateInternshipRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    authority.update_internship(caller, body.id, InternshipInput.from_wire(body.input.model_dump()))
    return _ok()


@router.post("/rpc/deleteInternship")
async def delete_internship(
    body: InternshipIdRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    authority.delete_internship(caller, body.id)
    return _ok()


@router.post("/rpc/getInternship")
async def get_internship(
    body: InternshipIdRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    internship = authority.get_internship(caller, body.id)
    return _ok(internship.to_wire() if internship else None)


@router.post("/rpc/getInternships")
async def get_internships(
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    return _ok([i.to_wire() for i in authority.get_internships(caller)])


@router.post("/rpc/getInternshipsByCategory")
async def get_internships_by_category(
    body: CategoryRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    return _ok([i.to_wire() for i in authority.get_internships_by_category(caller, body.category)])


@router.post("/rpc/getCategoryCounts")
async def get_category_counts(
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    return _ok([c.to_wire() for c in authority.get_category_counts(caller)])


# --- Profiles and roles ---


@router.post("/rpc/getCallerUserProfile")
async def get_caller_user_profile(
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    profile = authority.get_caller_user_profile(caller)
    return _ok(profile.to_wire() if profile else None)


@router.post("/rpc/getUserProfile")
async def get_user_profile(
    body: UserRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    profile = authority.get_user_profile(caller, Identity(body.user))
    return _ok(profile.to_wire() if profile else None)


@router.post("/rpc/saveCallerUserProfile")
async def save_caller_user_profile(
    body: SaveProfileRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    authority.save_caller_user_profile(caller, UserProfile.from_wire(body.profile.model_dump()))
    return _ok()


@router.post("/rpc/getCallerUserRole")
async def get_caller_user_role(
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    return _ok(authority.get_caller_user_role(caller).value)


@router.post("/rpc/isCallerAdmin")
async def is_caller_admin(
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    return _ok(authority.is_caller_admin(caller))


@router.post("/rpc/assignCallerUserRole")
async def assign_caller_user_role(
    body: AssignRoleRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    authority.assign_caller_user_role(caller, Identity(body.user), body.role)
    return _ok()


@router.post("/rpc/promoteAdminUsers")
async def promote_admin_users(
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    return _ok(authority.promote_admin_users(caller))


# --- Submissions ---


@router.post("/rpc/submitContactForm")
async def submit_contact_form(
    body: ContactFormRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    authority.submit_contact_form(caller, ContactFormInput(**body.input.model_dump()))
    return _ok()


@router.post("/rpc/submitCompanySurvey")
async def submit_company_survey(
    body: CompanySurveyRequest,
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    data = CompanySubmissionInput.from_wire(body.input.model_dump(), storage=authority.storage)
    return _ok(await authority.submit_company_survey(caller, data))


@router.post("/rpc/getAllCompanySubmissions")
async def get_all_company_submissions(
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    return _ok([s.to_wire() for s in authority.get_all_company_submissions(caller)])


@router.post("/rpc/getAllContactFormSubmissions")
async def get_all_contact_form_submissions(
    authority: InMemoryAuthority = Depends(get_authority),
    caller: Identity | None = Depends(get_caller),
):
    return _ok([s.to_wire() for s in authority.get_all_contact_form_submissions(caller)])


# --- Blobs ---


@router.post("/blobs")
async def put_blob(request: Request, authority: InMemoryAuthority = Depends(get_authority)):
    data = await request.body()
    locator = await authority.storage.put(data)
    logger.debug(f"Stored blob {locator} ({len(data)} bytes)")
    return _ok(locator)


@router.get("/blobs/{digest}")
async def get_blob(digest: str, authority: InMemoryAuthority = Depends(get_authority)):
    data = await authority.storage.get(digest)
    return Response(content=data, media_type="application/octet-stream")
