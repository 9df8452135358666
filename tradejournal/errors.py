"""
errors.py
---------

Exception types raised by the journal. Every error the application
expects to handle derives from ``JournalError`` so the web layer can
catch them in one place and turn them into a user-visible message.
"""

from dataclasses import dataclass
from typing import Optional


class JournalError(Exception):
    """Base class for all journal errors."""


class AuthRequiredError(JournalError):
    """A mutating store call was made without an authenticated user."""

    def __init__(self, message: str = "No user logged in") -> None:
        super().__init__(message)


@dataclass
class StoreError(JournalError):
    operation: str
    message: str
    cause: Optional[BaseException] = None

    def __str__(self) -> str:
        return f"StoreError [{self.operation}]: {self.message}"


class ValidationError(JournalError):
    """Raised when a trade or note payload cannot be parsed."""


IMPORT_DISABLED_MESSAGE = (
    "Importing directly to the Cloud Database is currently disabled to "
    "prevent data corruption. Please contact support."
)


class ImportDisabledError(JournalError):
    def __init__(self, message: str = IMPORT_DISABLED_MESSAGE) -> None:
        super().__init__(message)
