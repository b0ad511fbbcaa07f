"""
Exception types raised by ContentTreeLib.

Every error carries a ``data`` payload describing the offending query or
id so that callers (typically an HTTP layer) can map the error kind to a
response and still report what went wrong.
"""

from typing import Any, Dict, Optional


class ContentTreeError(Exception):
    """Base class for all content tree errors."""

    code = 'CONTENT_TREE_ERROR'

    def __init__(self, message: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = dict(data or {})
        super().__init__(message or self._default_message())

    def _default_message(self) -> str:
        if self.data:
            details = ', '.join(f"{k}={v!r}" for k, v in self.data.items())
            return f"{self.code} ({details})"
        return self.code

    def set_data(self, **data: Any) -> 'ContentTreeError':
        """Attach extra diagnostic data and return self for chaining."""
        self.data.update(data)
        return self


class NotFoundError(ContentTreeError):
    """A referenced node id does not resolve."""

    code = 'NOT_FOUND'


class InvalidParentError(ContentTreeError):
    """A required ancestor could not be located, or an insert target is missing or unsuitable."""

    code = 'INVALID_PARENT'


class ValidationFailure(ContentTreeError):
    """Raised by a SchemaValidator when data does not satisfy its schema."""

    code = 'VALIDATION_FAILED'


class CutIllegalError(ContentTreeError):
    """A node cannot be cut into itself or into its own subtree."""

    code = 'CUT_ILLEGAL'


class FriendlyIdMissingError(ContentTreeError):
    """Master-language content is missing friendly ids."""

    code = 'FRIENDLY_ID_MISSING'


class FriendlyIdDuplicateError(ContentTreeError):
    """Friendly ids are not unique within a course."""

    code = 'FRIENDLY_ID_DUPLICATE'


class PeerStructureError(ContentTreeError):
    """Language peers of a course do not mirror the master structure."""

    code = 'PEER_STRUCTURE'
