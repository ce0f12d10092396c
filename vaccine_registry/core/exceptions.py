"""Custom application exceptions."""

from pathlib import Path
from typing import Any


class AppException(Exception):
    """Base application exception."""

    code = "app_error"

    def __init__(self, message: str):
        """Initialize exception with message."""
        self.message = message
        super().__init__(self.message)


class InvalidFormatException(AppException):
    """Malformed input field."""

    code = "invalid_format"

    def __init__(self, message: str = "Invalid format"):
        super().__init__(message)


class IneligibleAgeException(AppException):
    """Citizen is below the minimum eligible age."""

    code = "ineligible_age"

    def __init__(self, message: str = "Ineligible age"):
        super().__init__(message)


class DuplicateEntityException(AppException):
    """An entity with the same identity key already exists."""

    code = "duplicate_entity"

    def __init__(self, message: str = "Entity already exists"):
        super().__init__(message)


class NotFoundException(AppException):
    """Citizen, center or appointment not found."""

    code = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class IneligibleTransitionException(AppException):
    """Dose requested out of order (second dose before the first)."""

    code = "ineligible_transition"

    def __init__(self, message: str = "Ineligible dose transition"):
        super().__init__(message)


class CapacityExceededException(AppException):
    """No slots left at a center for a given date."""

    code = "capacity_exceeded"

    def __init__(self, message: str = "Capacity exceeded"):
        super().__init__(message)


class PersistenceException(AppException):
    """
    I/O failure while reading or writing a flat file.

    When raised from a save, ``record`` holds the value that was already
    applied in memory; the in-memory state stays authoritative.
    """

    code = "persistence_failure"

    def __init__(
        self,
        message: str = "Persistence failure",
        path: Path | None = None,
        record: Any = None,
    ):
        """Initialize with the affected file and the in-memory record."""
        self.path = path
        self.record = record
        super().__init__(message)
