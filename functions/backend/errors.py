"""
Error taxonomy shared by the services and the HTTP layer.
"""

from __future__ import annotations

from typing import Sequence

PERMISSION_HINT = (
    "Permission denied. Please check your Firestore security rules in the "
    "Firebase console. They may be too restrictive."
)


class HonorsError(Exception):
    """Base class for errors raised by the honors backend."""


class ConfigurationError(HonorsError):
    """Backend credentials are missing, so the service runs offline."""

    def __init__(self, missing_keys: Sequence[str] = (), message: str | None = None):
        self.missing_keys = list(missing_keys)
        if message is None:
            message = "Firebase is not configured."
            if self.missing_keys:
                message += f" Missing keys: {', '.join(self.missing_keys)}."
        super().__init__(message)


class StorePermissionError(HonorsError):
    """The document store rejected an operation."""

    def __init__(self, action: str = "Operation"):
        super().__init__(f"{action} failed: {PERMISSION_HINT}")


class DocumentNotFoundError(HonorsError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Document not found: {path}")


class ValidationError(HonorsError):
    """A request was well-formed but its content is unusable."""


class InvalidStatusTransitionError(HonorsError):
    def __init__(self, current: str, requested: str, allowed: Sequence[str]):
        self.current = current
        self.requested = requested
        self.allowed = list(allowed)
        allowed_text = ", ".join(self.allowed) if self.allowed else "none"
        super().__init__(
            f"Cannot move a proposal from '{current}' to '{requested}'. "
            f"Allowed next statuses: {allowed_text}."
        )


class SuggestionUnavailableError(HonorsError):
    """The AI suggestion flow failed (network, quota or schema mismatch)."""

    def __init__(self, message: str = "", quota_exceeded: bool = False):
        self.quota_exceeded = quota_exceeded
        super().__init__(message or "Suggestion request failed.")
