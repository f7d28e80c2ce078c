"""
Bridge Python SDK - client core of the student/company internship platform.

This SDK provides the data-access and session core behind the platform's views:
- QueryCache with single-flight reads and prefix invalidation
- MutationCoordinator with a fixed write-to-invalidation table
- SessionStore and RoleResolver for identity and server-decided roles
- AccessGuard for protected views
- SeedImporter for the curated partner internships
- BlobIngestor for survey documents

Example:
    >>> from sdk.bridge_sdk import HttpBackend, InMemoryIdentityProvider, create_context
    >>>
    >>> provider = InMemoryIdentityProvider("admin-1")
    >>> remote = HttpBackend(caller=provider)
    >>> ctx = create_context(remote, provider)
    >>> await ctx.session.establish()
    >>> guard = ctx.guard(require_admin=True)
    >>> decision = await guard.start()

Invariants:
    - Every identity change flushes the whole cache
    - Writes invalidate exactly their row of the invalidation table
    - Authorization is decided remotely; the client only gates rendering

Version: 1.0.0
"""

__version__ = "1.0.0"

from ._http_client import HttpBackend
from .backend import ContentStorage, IdentityProvider, RemoteService
from .blobs import BlobIngestor, ContentHandle, StagedFile, StagingArea, format_file_size
from .cache import CacheEntry, CacheStatus, QueryCache, Subscription
from .config import Settings
from .context import AppContext, create_context
from .errors import (
    BridgeError,
    ContentReadError,
    SessionBusyError,
    SessionDesyncError,
    SessionError,
    SessionErrorCode,
    TransportError,
    ValidationError,
    strip_provider_prefix,
)
from .guard import AccessGuard, DenyReason, GuardDecision, GuardState, ProfileSetupGate, evaluate_access
from .links import normalize_link
from .memory import (
    InMemoryAuthority,
    InMemoryBackend,
    InMemoryContentStorage,
    InMemoryIdentityProvider,
)
from .mutations import INVALIDATIONS, Mutation, MutationCoordinator
from .notifications import Level, Notification, Notifier
from .queries import Queries
from .roles import RoleResolver
from .seed import SeedImporter, natural_key
from .session import LoginStatus, SessionStore
from .types import (
    ABSENT,
    Absent,
    AccountType,
    CategoryCount,
    CompanySubmission,
    CompanySubmissionInput,
    ContactFormInput,
    ContactFormSubmission,
    Identity,
    Internship,
    InternshipInput,
    Option,
    Present,
    Role,
    SeedResult,
    UserProfile,
)

__all__ = [
    # Version
    "__version__",
    # Records
    "ABSENT",
    "Absent",
    "AccountType",
    "CategoryCount",
    "CompanySubmission",
    "CompanySubmissionInput",
    "ContactFormInput",
    "ContactFormSubmission",
    "Identity",
    "Internship",
    "InternshipInput",
    "Option",
    "Present",
    "Role",
    "SeedResult",
    "UserProfile",
    # Collaborators
    "ContentStorage",
    "IdentityProvider",
    "RemoteService",
    "HttpBackend",
    "InMemoryAuthority",
    "InMemoryBackend",
    "InMemoryContentStorage",
    "InMemoryIdentityProvider",
    # Core
    "AppContext",
    "create_context",
    "Settings",
    "QueryCache",
    "CacheEntry",
    "CacheStatus",
    "Subscription",
    "Queries",
    "RoleResolver",
    "SessionStore",
    "LoginStatus",
    "Mutation",
    "MutationCoordinator",
    "INVALIDATIONS",
    "SeedImporter",
    "natural_key",
    "AccessGuard",
    "ProfileSetupGate",
    "GuardDecision",
    "GuardState",
    "DenyReason",
    "evaluate_access",
    "BlobIngestor",
    "ContentHandle",
    "StagedFile",
    "StagingArea",
    "format_file_size",
    "normalize_link",
    "Notifier",
    "Notification",
    "Level",
    # Errors
    "BridgeError",
    "TransportError",
    "ValidationError",
    "SessionError",
    "SessionErrorCode",
    "SessionDesyncError",
    "SessionBusyError",
    "ContentReadError",
    "strip_provider_prefix",
]
