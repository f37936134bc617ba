"""
Domain errors raised by the case store, codec, and storage backends.
"""

from typing import Optional


class CaseStoreError(Exception):
    """Base class for all case store failures."""

    message = "Case store error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.message
        super().__init__(self.detail)


class ValidationError(CaseStoreError):
    """A required field is missing or empty, or the id is not usable."""
    message = "Missing required fields"


class ConflictError(CaseStoreError):
    """The id already exists, or the version token is stale."""
    message = "Case was modified or already exists"


class NotFoundError(CaseStoreError):
    """The target case does not exist."""
    message = "Case not found"


class FormatError(CaseStoreError):
    """The frontmatter block of a document is malformed."""
    message = "Malformed markdown document"


class BackendError(CaseStoreError):
    """Network or filesystem failure in a storage backend."""
    message = "Storage backend error"

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(detail)
        self.status_code = status_code
