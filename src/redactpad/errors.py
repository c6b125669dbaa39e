"""Exceptions raised by Redactpad."""

from typing import Optional


class RedactpadError(Exception):
    """Base class for all Redactpad errors."""


class ValidationError(RedactpadError):
    """A rectangle violates the geometry rules; raised before any page is touched."""

    def __init__(self, page_number: int, index: Optional[int], reason: str):
        self.page_number = page_number
        self.index = index
        self.reason = reason
        where = f"page {page_number}"
        if index is not None:
            where += f", rectangle {index}"
        super().__init__(f"Invalid redaction on {where}: {reason}")


class ProcessingError(RedactpadError):
    """The document could not be turned into a redacted copy."""


class SourceParseError(ProcessingError):
    """The original document bytes could not be parsed."""


class RasterizationError(ProcessingError):
    """A page could not be rendered to a bitmap."""

    def __init__(self, page_number: int, message: str):
        self.page_number = page_number
        super().__init__(f"Failed to render page {page_number}: {message}")


class AssemblyError(ProcessingError):
    """The redacted document could not be built or serialized."""


class SessionError(RedactpadError):
    """A session command cannot run in the current state."""


class ApplyInProgressError(SessionError):
    """Another apply is still running for this session."""


class MissingDocumentError(SessionError):
    """No original document has been loaded into the session."""


class AlreadyAppliedError(SessionError):
    """Redactions were already applied in this session."""
