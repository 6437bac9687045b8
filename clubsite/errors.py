"""
Error taxonomy shared by the repository, upload handler and PDF proxy.

Each error carries the HTTP status it maps to; ``app.py`` renders them as
``{"error": message}`` responses.
"""

from __future__ import annotations


class ContentError(Exception):
    """Base exception for request failures with a known HTTP status."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ContentError):
    """Missing or invalid request field."""

    status_code = 400
    default_message = "Invalid request"


class AuthError(ContentError):
    status_code = 401
    default_message = "Authentication required"


class NotFoundError(ContentError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ContentError):
    """Raised when the document store reports a duplicate natural key."""

    status_code = 409
    default_message = "Duplicate id"


class BackendUnavailable(ContentError):
    """No durable store is configured for the requested entity."""

    status_code = 503
    default_message = "Database not configured"


class StoreError(ContentError):
    """Any other persistence failure; the detail stays in the logs."""

    status_code = 500
    default_message = "Storage failure"


class UploadNotConfigured(ContentError):
    status_code = 501
    default_message = "Upload storage not configured"


class _StatusOverride(ContentError):
    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class UploadRejected(_StatusOverride):
    """Upload refused: missing file (400), too large (413) or wrong type (415)."""

    status_code = 400
    default_message = "No file"


class UpstreamError(_StatusOverride):
    """PDF proxy failure; status is 502, 413 or 415 depending on the cause."""

    status_code = 502
    default_message = "fetch failed"
