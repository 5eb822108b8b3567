"""
Error taxonomy for directory imports.

Only run-level problems are raised as exceptions. Row-level problems travel as
data (validation results and import failures) tagged with an ``IssueCategory``.
"""

from __future__ import annotations

import enum


class IssueCategory(str, enum.Enum):
    """Classification attached to per-record errors and warnings."""

    FORMAT = "format"
    REFERENTIAL = "referential"
    BUSINESS_RULE = "business_rule"
    DUPLICATE = "duplicate"
    PERSISTENCE = "persistence"
    SIDE_EFFECT = "side_effect"


class ImporterError(Exception):
    """Base exception for failures that abort an entire import run."""


class FileFormatError(ImporterError):
    """Raised when an uploaded file is empty, unreadable or of an unsupported type."""

    def __init__(self, message: str, *, extension: str | None = None) -> None:
        super().__init__(message)
        self.extension = extension


class PreconditionError(ImporterError):
    """Raised when the directory or job-level reference data cannot be loaded."""


class DestinationUnavailableError(ImporterError):
    """Raised when the destination store cannot be reached at all."""


class FieldFormatError(ValueError):
    """Raised by field normalizers when a value cannot be parsed."""

    def __init__(self, message: str, *, field: str | None = None, value: object | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value
