"""
Error types for the Bridge client SDK.

This module defines all exception types raised by the SDK:
- BridgeError: Base exception
- TransportError: A remote call failed
- ValidationError: Local form validation failed (never reaches the network)
- SessionError: Identity-provider failures, with a structured code
- ContentReadError: A local byte source could not be read

Seeding partial failures and access denial are not exceptions: the former is
returned as aggregate counts, the latter is a renderable guard state.

Invariants:
    - All SDK errors inherit from BridgeError (ContentReadError also from OSError)
    - Session failures are matched on SessionErrorCode, never on message text
    - Messages shown to users pass through strip_provider_prefix
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

# Prefixes the hosted authority adds to reject messages. Order matters:
# the longer prefix must be removed first.
PROVIDER_PREFIXES = ("Uncaught Error: ", "Uncaught ")


def strip_provider_prefix(message: str) -> str:
    """Remove known provider-added prefixes from a remote error message."""
    for prefix in PROVIDER_PREFIXES:
        message = message.replace(prefix, "", 1)
    return message


class BridgeError(Exception):
    """Base exception for all Bridge SDK errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "BRIDGE_ERROR"
        self.details = details or {}


class TransportError(BridgeError):
    """A remote call failed.

    Raised when:
    - The remote authority rejects the call (including authorization failures)
    - The server is unreachable or answers with a non-2xx status
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            code="TRANSPORT_ERROR",
            details={"operation": operation, "status_code": status_code},
        )
        self.operation = operation
        self.status_code = status_code

    @property
    def display_message(self) -> str:
        """Message with provider prefixes removed, safe to show to users."""
        return strip_provider_prefix(self.message)


class ValidationError(BridgeError):
    """Local validation failed.

    Attributes:
        field_errors: Mapping of field name to a human-readable message
    """

    def __init__(
        self,
        message: str,
        field_errors: Optional[Dict[str, str]] = None,
    ) -> None:
        field_errors = dict(field_errors or {})
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"fields": field_errors},
        )
        self.field_errors = field_errors


class SessionErrorCode(Enum):
    """Enumerable identity-provider failure conditions."""

    ALREADY_ESTABLISHED = "already_established"
    ESTABLISH_IN_PROGRESS = "establish_in_progress"
    PROVIDER_FAILURE = "provider_failure"


class SessionError(BridgeError):
    """Identity-provider failure.

    Attributes:
        session_code: Structured failure condition
    """

    def __init__(
        self,
        message: str,
        session_code: SessionErrorCode = SessionErrorCode.PROVIDER_FAILURE,
    ) -> None:
        super().__init__(
            message,
            code="SESSION_ERROR",
            details={"session_code": session_code.value},
        )
        self.session_code = session_code


class SessionDesyncError(SessionError):
    """The provider reports a session that is not recorded locally."""

    def __init__(self, message: str = "User is already authenticated") -> None:
        super().__init__(message, SessionErrorCode.ALREADY_ESTABLISHED)


class SessionBusyError(SessionError):
    """establish() was called while another establish() is in flight."""

    def __init__(self, message: str = "Sign-in already in progress") -> None:
        super().__init__(message, SessionErrorCode.ESTABLISH_IN_PROGRESS)


class ContentReadError(BridgeError, OSError):
    """Reading a local byte source failed.

    Attributes:
        name: Name of the source, when known
    """

    def __init__(self, message: str, name: Optional[str] = None) -> None:
        BridgeError.__init__(
            self,
            message,
            code="CONTENT_READ_ERROR",
            details={"name": name},
        )
        self.name = name
