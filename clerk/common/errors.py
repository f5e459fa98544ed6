"""
Error types shared by every Clerk component.

Each error carries a human-readable message and, where available, the
downstream details (HTTP status, SDK error text) for diagnostics.
"""

from typing import Any, Optional


class ClerkError(Exception):
    """Base class for Clerk errors."""

    stage = "request"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidArgument(ClerkError, ValueError):
    """Required input missing or malformed."""

    stage = "validation"


class EmbeddingFailure(ClerkError):
    """The embedding service call failed."""

    stage = "embedding"


class GenerationFailure(ClerkError):
    """The generation service call failed.

    When raised after a successful retrieval, ``results`` holds the
    retrieved records so they can still be shown to the caller.
    """

    stage = "generation"

    def __init__(self, message: str, details: Optional[Any] = None, results: Optional[list] = None):
        super().__init__(message, details)
        self.results = results or []


class StorageFailure(ClerkError):
    """The vector store file could not be read or written."""

    stage = "storage"


def error_details(exc: Exception) -> dict:
    """Pull type, message and status code off a provider SDK exception."""
    details = {"type": type(exc).__name__, "message": str(exc)}
    status_code = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    if isinstance(status_code, int):
        details["status_code"] = status_code
    return details
