from __future__ import annotations
from typing import Optional


class TrackerError(Exception):
    """Base class for every error raised by jobtracker."""


class ValidationError(TrackerError, ValueError):
    """A record or date value failed validation."""


class ExtractionError(TrackerError):
    """Pasted content could not be parsed at all."""


class DuplicateRecordError(TrackerError):
    def __init__(self, company: str, position: str, date_applied: Optional[str]):
        self.company = company
        self.position = position
        self.date_applied = date_applied
        super().__init__(
            f"Application for {position!r} at {company!r} on {date_applied or '-'} already exists"
        )


class StorageError(TrackerError):
    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class BackupError(TrackerError):
    """The backup sink could not upload the database."""
