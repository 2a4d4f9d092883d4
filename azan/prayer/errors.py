"""
Error kinds and exceptions raised by the prayer-time cache.
"""
from typing import Optional


class ErrorKind:
    """Classification of a failed refresh."""
    PERMISSION_MISSING = "permission_missing"
    LOCATION_UNAVAILABLE = "location_unavailable"
    METHOD_TABLE_UNAVAILABLE = "method_table_unavailable"
    COMPUTATION_FAILED = "computation_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    # Retrying without new input from the user cannot succeed
    NOT_RETRYABLE = frozenset({PERMISSION_MISSING, LOCATION_UNAVAILABLE})


class AzanError(Exception):
    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class LocationUnavailable(AzanError):
    kind = ErrorKind.LOCATION_UNAVAILABLE


class ComputationFailed(AzanError):
    kind = ErrorKind.COMPUTATION_FAILED


class PersistenceFailed(AzanError):
    kind = ErrorKind.PERSISTENCE_FAILED


class RefreshCancelled(AzanError):
    kind = ErrorKind.CANCELLED
