"""
Tagcache - Core Error Types

Defines the exception hierarchy for the tagged cache runtime.
All exceptions inherit from TagcacheError for consistent error handling.

Read-path failures (malformed records, stale entries, slow backends) are
never raised: they degrade to cache misses. Only setup problems, values
that cannot be pickled and misuse of the transaction protocol surface as
exceptions.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes for structured error reporting.
    """

    # Configuration errors
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    MISSING_CONFIGURATION = "MISSING_CONFIGURATION"

    # Backend errors
    CACHE_CONNECTION = "CACHE_CONNECTION"
    CACHE_FAILURE = "CACHE_FAILURE"

    # Transaction errors
    TRANSACTION_STATE = "TRANSACTION_STATE"

    # Serialization errors
    SERIALIZATION = "SERIALIZATION"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TagcacheError(Exception):
    """Base exception for all tagcache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(TagcacheError):
    """Raised when configuration is invalid or missing."""

    pass


class MissingConfigurationError(ConfigurationError):
    """Raised when a cache is used before it has been configured or connected."""

    pass


class CacheError(TagcacheError):
    """Base exception for cache-related errors."""

    pass


class CacheConnectionError(CacheError):
    """Raised when the cache backend cannot be reached at connect time."""

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to cache backend: {backend}"
        super().__init__(message, details)


class CacheTransactionError(CacheError):
    """Raised when the transaction protocol is used out of order."""

    pass


class SerializationError(CacheError):
    """Raised when a value cannot be serialized for storage."""

    def __init__(self, message: str, value_type: str | None = None):
        super().__init__(message, {"value_type": value_type} if value_type else None)


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, CacheConnectionError):
        return ErrorCode.CACHE_CONNECTION

    if isinstance(error, CacheTransactionError):
        return ErrorCode.TRANSACTION_STATE

    if isinstance(error, SerializationError):
        return ErrorCode.SERIALIZATION

    if isinstance(error, CacheError):
        return ErrorCode.CACHE_FAILURE

    if isinstance(error, MissingConfigurationError):
        return ErrorCode.MISSING_CONFIGURATION

    if isinstance(error, ConfigurationError):
        return ErrorCode.INVALID_CONFIGURATION

    return ErrorCode.INTERNAL_ERROR
