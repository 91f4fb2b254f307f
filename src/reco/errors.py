"""Error taxonomy for reco.

Every failure the package raises on purpose derives from ``RecoError`` and
carries an ``ErrorCategory`` so callers (the action boundary, the CLI) can
render a structured outcome without inspecting exception types.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Categories of errors for handling decisions."""

    VALIDATION = "validation"  # Bad input, rejected before any write
    RESOURCE = "resource"  # Missing transcript/project
    STORAGE = "storage"  # Persistence I/O or corrupt record
    INTERNAL = "internal"  # Bug in code


class RecoError(Exception):
    """Base exception for reco errors.

    Attributes:
        message: Human-readable error message
        category: Error category for handling
        context: Additional context information
    """

    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message


class ValidationError(RecoError):
    """Invalid create/update input.

    Examples: empty project name, an aggregate span whose segments do not
    match the requested index range.
    """

    category = ErrorCategory.VALIDATION


class UnsupportedFormatError(ValidationError):
    """Subtitle file extension is not one of the supported grammars."""

    def __init__(self, extension: str, context: dict | None = None):
        label = f".{extension}" if extension else "(no extension)"
        super().__init__(f"Unsupported subtitle format: {label}", context)
        self.extension = extension


class InvalidReorderError(ValidationError):
    """A reorder sequence is not a permutation of the stored aggregates."""

    def __init__(
        self,
        message: str,
        missing: set[str] | None = None,
        unexpected: set[str] | None = None,
    ):
        context: dict[str, Any] = {}
        if missing:
            context["missing"] = sorted(missing)
        if unexpected:
            context["unexpected"] = sorted(unexpected)
        super().__init__(message, context)
        self.missing = missing or set()
        self.unexpected = unexpected or set()


class NotFoundError(RecoError):
    """A requested record does not exist."""

    category = ErrorCategory.RESOURCE


class ProjectNotFoundError(NotFoundError):
    """No project with the given id."""

    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class TranscriptNotFoundError(NotFoundError):
    """No transcript with the given id."""

    def __init__(self, transcript_id: str):
        super().__init__(f"Transcript not found: {transcript_id}")
        self.transcript_id = transcript_id


class StorageError(RecoError):
    """Persistence failure: unreadable, unwritable or corrupt record."""

    category = ErrorCategory.STORAGE


def format_error_for_display(error: Exception) -> str:
    """Format an error message for user display.

    Args:
        error: Error to format

    Returns:
        Human-readable error message
    """
    if isinstance(error, RecoError):
        category = error.category.value
        if error.context:
            context_str = ", ".join(f"{k}={v}" for k, v in error.context.items())
            return f"[{category}] {error.message} ({context_str})"
        return f"[{category}] {error.message}"

    return f"[error] {type(error).__name__}: {error}"
