"""
Custom exceptions for the storage facade.
"""

from enum import Enum


class ErrorKind(Enum):
    """Failure categories reported in an OperationResult."""
    UNKNOWN_LOCATION = 'unknown_location'
    MALFORMED_INPUT = 'malformed_input'
    PROVIDER_ERROR = 'provider_error'


class StorageError(Exception):
    """Base exception for storage errors."""

    kind: ErrorKind = None


class ConfigurationError(StorageError):
    """Location configuration errors (missing or invalid config)."""
    pass


class ConfigNotFound(ConfigurationError):
    """The location configuration source does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Configuration file not found: {path}")
        self.path = path


class InvalidConfig(ConfigurationError):
    """The location configuration source exists but cannot be used."""
    pass


class UnknownLocation(StorageError):
    """Logical location key is not present in the registry."""

    kind = ErrorKind.UNKNOWN_LOCATION

    def __init__(self, logical_key: str):
        super().__init__(f"Unknown storage location: {logical_key}")
        self.logical_key = logical_key


class MalformedInput(StorageError):
    """Object key rejected before reaching the provider."""

    kind = ErrorKind.MALFORMED_INPUT


class ProviderError(StorageError):
    """Provider/API errors."""

    kind = ErrorKind.PROVIDER_ERROR

    def __init__(self, message: str, code: str = None, status_code: int = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code
