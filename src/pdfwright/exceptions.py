"""Unified exception hierarchy for pdfwright.

All pdfwright exceptions inherit from PdfWrightError, enabling:
- Catching all pdfwright errors with `except PdfWrightError`
- Error context preservation via the `context` attribute
- Causality chains via `raise ... from e` patterns

An empty page range is not an error: it resolves to zero target pages and
the operation becomes a no-op.
"""

from typing import Any


class PdfWrightError(Exception):
    """Base exception for all pdfwright errors.

    Args:
        message: Human-readable error description
        context: Optional dict of contextual information (page, operation, etc.)
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}

    def __str__(self) -> str:
        base = super().__str__()
        if self.context:
            details = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} [{details}]"
        return base


class ConfigError(PdfWrightError):
    """Raised when a job file is invalid or cannot be loaded."""


class InvalidGeometry(PdfWrightError):
    """Raised when coordinate conversion gets non-positive page dimensions."""


class InvalidRange(PdfWrightError):
    """Raised when a page range is structurally impossible (start < 1)."""


class DocumentLoadError(PdfWrightError):
    """Raised when the input document cannot be parsed."""


class EmbedError(PdfWrightError):
    """Raised when an image cannot be decoded for embedding."""


class MutationError(PdfWrightError):
    """Raised when a page mutation fails during an apply."""


class AuthenticationError(PdfWrightError):
    """Raised when a document password is wrong."""


class ExternalToolError(PdfWrightError):
    """Raised when an external tool (Ghostscript) is missing or fails."""
