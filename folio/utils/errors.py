"""
Defines custom exception classes for the application.
"""
from typing import List, Optional


class FolioException(Exception):
    """Base exception class for the folio application."""
    pass


class ConfigError(FolioException):
    """Raised when there is a configuration error."""
    pass


class PreconditionError(FolioException):
    """Raised when a credential required by a remote call is missing."""
    pass


class FetchError(FolioException):
    """Raised when a document cannot be loaded from the content origin."""

    def __init__(self, document: str, message: str, status: Optional[int] = None):
        self.document = document
        self.status = status
        detail = f"{status} {message}" if status is not None else message
        super().__init__(f"Failed to fetch {document}.json: {detail}")


class AssistantError(FolioException):
    """Raised when the assistant call fails or returns a malformed reply."""
    pass


class HostingError(FolioException):
    """Raised when the hosting API rejects a read or write."""
    pass


class CommitError(FolioException):
    """Raised when a multi-file commit stops part way through."""

    def __init__(self, document: str, reason: Exception, committed: Optional[List[str]] = None):
        self.document = document
        self.reason = reason
        self.committed = list(committed or [])
        super().__init__(f"{document}: {reason}")


class WorkflowError(FolioException):
    """Raised when an event is not valid in the current workflow state."""
    pass


class RenderError(FolioException):
    """Raised when the page or a proposal cannot be rendered."""
    pass
