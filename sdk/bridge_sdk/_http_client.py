"""
HTTP transport for the remote authority.

This module provides the low-level HTTP communication layer used by
create_context() and the CLI. Every operation is `POST /rpc/<operation>` with a
JSON body; the answer is `{"result": ...}` on success and `{"error": "..."}`
with a non-2xx status on failure. The caller travels in the X-Actor header.

Document bytes are stored first through `POST /blobs` (streamed, with upload
progress reported through each content handle) and then referenced by locator.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx

from .backend import IdentityProvider, ProgressSink
from .config import Settings
from .errors import TransportError
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

ACTOR_HEADER = "X-Actor"


class HttpBackend:
    """RemoteService and ContentStorage over HTTP.

    Example:
        >>> async with HttpBackend(Settings(api_url="http://localhost:8000"), caller=provider) as remote:
        ...     counts = await remote.get_category_counts()

    Args:
        settings: Supplies api_url, request_timeout and the upload chunk size
        caller: Identity provider (or zero-argument callable) naming the caller
        transport: Optional httpx transport, e.g. httpx.ASGITransport in tests
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        caller: IdentityProvider | Callable[[], Identity | None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or Settings()
        if isinstance(caller, IdentityProvider):
            provider = caller
            self._caller: Callable[[], Identity | None] = lambda: provider.identity
        else:
            self._caller = caller or (lambda: None)
        self._client = httpx.AsyncClient(
            base_url=self._settings.api_url.rstrip("/"),
            timeout=self._settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> HttpBackend:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        identity = self._caller()
        return {ACTOR_HEADER: identity.principal} if identity else {}

    async def _call(self, operation: str, payload: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.post(
                f"/rpc/{operation}", json=payload or {}, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"{operation} failed: {e}")
            raise TransportError(f"Cannot reach {self._settings.api_url}: {e}", operation) from e
        return _result(response, operation)

    # ── Internships ──────────────────────────────────────────────────────

    async def add_internship(self, data: InternshipInput) -> int:
        return int(await self._call("addInternship", {"input": data.to_wire()}))

    async def update_internship(self, internship_id: int, data: InternshipInput) -> None:
        await self._call("updateInternship", {"id": internship_id, "input": data.to_wire()})

    async def delete_internship(self, internship_id: int) -> None:
        await self._call("deleteInternship", {"id": internship_id})

    async def get_internship(self, internship_id: int) -> Internship | None:
        result = await self._call("getInternship", {"id": internship_id})
        return Internship.from_wire(result) if result is not None else None

    async def get_internships(self) -> list[Internship]:
        return [Internship.from_wire(item) for item in await self._call("getInternships")]

    async def get_internships_by_category(self, category: str) -> list[Internship]:
        result = await self._call("getInternshipsByCategory", {"category": category})
        return [Internship.from_wire(item) for item in result]

    async def get_category_counts(self) -> list[CategoryCount]:
        return [CategoryCount.from_wire(item) for item in await self._call("getCategoryCounts")]

    # ── Profiles and roles ───────────────────────────────────────────────

    async def get_caller_user_profile(self) -> UserProfile | None:
        result = await self._call("getCallerUserProfile")
        return UserProfile.from_wire(result) if result is not None else None

    async def get_user_profile(self, identity: Identity) -> UserProfile | None:
        result = await self._call("getUserProfile", {"user": identity.principal})
        return UserProfile.from_wire(result) if result is not None else None

    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        await self._call("saveCallerUserProfile", {"profile": profile.to_wire()})

    async def get_caller_user_role(self) -> Role:
        return Role(await self._call("getCallerUserRole"))

    async def is_caller_admin(self) -> bool:
        return bool(await self._call("isCallerAdmin"))

    async def assign_caller_user_role(self, identity: Identity, role: Role) -> None:
        await self._call("assignCallerUserRole", {"user": identity.principal, "role": role.value})

    async def promote_admin_users(self) -> int:
        return int(await self._call("promoteAdminUsers"))

    # ── Submissions ──────────────────────────────────────────────────────

    async def submit_contact_form(self, data: ContactFormInput) -> None:
        await self._call("submitContactForm", {"input": data.to_wire()})

    async def submit_company_survey(self, data: CompanySubmissionInput) -> int:
        stored = []
        for handle in data.legal_documents:
            if handle.direct_url is None:
                handle = await handle.upload(self)
            stored.append(handle)
        data = dataclasses.replace(data, legal_documents=tuple(stored))
        return int(await self._call("submitCompanySurvey", {"input": data.to_wire()}))

    async def get_all_company_submissions(self) -> list[CompanySubmission]:
        result = await self._call("getAllCompanySubmissions")
        return [CompanySubmission.from_wire(item, storage=self) for item in result]

    async def get_all_contact_form_submissions(self) -> list[ContactFormSubmission]:
        result = await self._call("getAllContactFormSubmissions")
        return [ContactFormSubmission.from_wire(item) for item in result]

    # ── Content storage ──────────────────────────────────────────────────

    async def put(self, data: bytes, progress: ProgressSink | None = None) -> str:
        """Stream bytes to the blob store. Returns the stored locator."""
        chunk_size = self._settings.ingest_chunk_size
        total = len(data)

        async def body() -> AsyncIterator[bytes]:
            for offset in range(0, total, chunk_size):
                yield data[offset : offset + chunk_size]
                if progress:
                    progress(min(total, offset + chunk_size) * 100 // total)

        try:
            response = await self._client.post(
                "/blobs",
                content=body(),
                headers={**self._headers(), "Content-Type": "application/octet-stream"},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Upload failed: {e}", "put") from e
        return _result(response, "put")

    async def get(self, locator: str) -> bytes:
        digest = locator.rsplit("/", 1)[-1]
        try:
            response = await self._client.get(f"/blobs/{digest}", headers=self._headers())
        except httpx.HTTPError as e:
            raise TransportError(f"Download failed: {e}", "get") from e
        if response.is_error:
            _result(response, "get")
        return response.content


def _result(response: httpx.Response, operation: str) -> Any:
    """Unwrap a {"result": ...} body or raise TransportError for non-2xx answers."""
    if response.is_error:
        try:
            message = response.json().get("error") or response.text
        except ValueError:
            message = response.text or response.reason_phrase
        logger.debug(f"{operation} -> {response.status_code}: {message}")
        raise TransportError(message, operation=operation, status_code=response.status_code)
    return response.json().get("result")
