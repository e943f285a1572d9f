"""
Error types for the rift encoder and its position index.

Lookups and measurements against absent keys are not errors and never raise.
A full output buffer is not an error either; it is reported on the
transform result.
"""

from typing import Optional, Any, Dict


class RiftError(Exception):
    """
    Base exception for all riftopen errors.

    Carries a structured ``details`` mapping for logging and reporting.
    """

    fatal = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize rift error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnavailableSourceError(RiftError):
    """
    Raised when a byte source cannot be opened or read.

    ``transform_file`` converts this into a zero-byte result.
    """

    def __init__(self, message: str,
                 path: Optional[str] = None,
                 reason: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.path = path
        self.reason = reason

        self.details.update({
            'path': path,
            'reason': reason
        })


class IndexAllocationError(RiftError):
    """
    Raised when a new index node cannot be created.

    Fatal: the caller must stop feeding the index. The tree itself is left
    exactly as it was before the failed insert.
    """

    fatal = True

    def __init__(self, message: str,
                 key: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.key = key
        self.details['key'] = key


class IndexInvariantError(RiftError):
    """Raised by ``BalancedIndex.check_invariants`` when the tree is malformed."""

    fatal = True

    def __init__(self, message: str,
                 key: Optional[int] = None,
                 invariant: str = 'general',
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize invariant error.

        Args:
            message: Error message
            key: Key of the offending node
            invariant: Which invariant broke ('balance', 'order', 'height', 'parent')
            details: Additional error context
        """
        super().__init__(message, details)
        self.key = key
        self.invariant = invariant

        self.details.update({
            'key': key,
            'invariant': invariant
        })


class PositionOverflowError(RiftError):
    """Raised when the running output position would leave the uint32 range."""

    fatal = True

    def __init__(self, message: str,
                 position: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.position = position
        self.details['position'] = position


class ConfigError(RiftError):
    """Raised when configuration values are out of range or unreadable."""

    def __init__(self, message: str,
                 field_name: Optional[str] = None,
                 value: Any = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field_name = field_name
        self.value = value

        self.details.update({
            'field': field_name,
            'value': value
        })


def is_fatal(error: Exception) -> bool:
    """Check if error must halt the current stream."""
    return isinstance(error, RiftError) and error.fatal


def is_unavailable_source(error: Exception) -> bool:
    """Check if error is due to an unreadable byte source."""
    return isinstance(error, UnavailableSourceError)


def is_invariant_violation(error: Exception, invariant: Optional[str] = None) -> bool:
    """Check if error is an index invariant violation, optionally of one kind."""
    if not isinstance(error, IndexInvariantError):
        return False
    return invariant is None or error.invariant == invariant
