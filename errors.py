"""
Error taxonomy for the import pipeline.

- InputError: malformed or missing request data (surfaced to the caller, 400)
- UpstreamError: remote translation or storage failure (recovered locally
  where a fallback exists, otherwise reported per item)
- NotFoundError: referenced session absent (404)
"""

from typing import Any, Dict, Optional


class RecetarioError(Exception):
    """
    Base exception for pipeline errors.

    Attributes:
        message: Human-readable error description
        operation: The operation that failed (e.g., "parse_export", "translate")
        details: Additional context (e.g., HTTP status code, sizes)
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.operation = operation
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context."""
        parts = [self.message]
        if self.operation:
            parts.insert(0, f"[{self.operation}]")
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)


class InputError(RecetarioError):
    """Request data is missing, malformed, or over a size ceiling."""
    pass


class NotFoundError(RecetarioError):
    """A referenced session (or other record) does not exist."""
    pass


class UpstreamError(RecetarioError):
    """A remote collaborator (translation provider, blob storage) failed."""
    pass


class TranslationAPIError(UpstreamError):
    """Every configured translation instance failed for a text."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = "translate",
        status_code: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop('details', {})
        if status_code is not None:
            details['status_code'] = status_code
        super().__init__(message, operation, details)
        self.status_code = status_code


class StorageError(UpstreamError):
    """Blob or document storage rejected a write."""
    pass
