"""errors.py

Exception hierarchy shared by the destination index, the parcel registry and
the loaders.
"""

from __future__ import annotations

from typing import Any, Optional


class ParcelSortError(Exception):
    """Base exception class for ParcelSort."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[dict] = None):
        """Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            details: Optional additional error details
        """
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.error_code:
            return f"[{self.error_code}] {base_msg}"
        return base_msg


class ValidationError(ParcelSortError):
    """Null, blank or out-of-range input."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class StateConsistencyError(ParcelSortError):
    """Internal counters contradict the live structure."""
    pass


class BufferFullError(ParcelSortError):
    """Enqueue on an arrival buffer that is at capacity."""
    pass


class BufferEmptyError(ParcelSortError):
    """Dequeue or peek on an empty arrival buffer."""
    pass


class DuplicateParcelError(ParcelSortError):
    """A parcel ID is already tracked by the registry."""

    def __init__(self, message: str, parcel_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.parcel_id = parcel_id


class ParcelNotFoundError(ParcelSortError):
    """A parcel ID is not tracked by the registry."""

    def __init__(self, message: str, parcel_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.parcel_id = parcel_id


class ConfigurationError(ParcelSortError):
    """Exception raised for configuration-related errors."""
    pass
