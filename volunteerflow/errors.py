"""
Error taxonomy shared by the API gate, the redaction policy and storage.
"""

from typing import Any, Dict, Optional


class AccessError(Exception):
    """Base class for authorization failures decided at the gate."""
    status_code = 403
    error = "Forbidden"
    default_message = "Access restricted"

    def __init__(self, message: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        # Diagnostic detail for logs only, never sent to the client.
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class Unauthenticated(AccessError):
    """No resolvable identity; the client should log in again."""
    status_code = 401
    error = "Unauthorized"
    default_message = "Authentication required"


class Forbidden(AccessError):
    """Identity and role present, privilege insufficient."""


class Unauthorized(Forbidden):
    """Identity present but role missing or unrecognised.

    Responds exactly like :class:`Forbidden`; only the log line differs.
    """


class ValidationError(ValueError):
    """Request payload failed validation."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}
