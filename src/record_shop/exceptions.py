"""Custom exceptions for record shop."""


class RecordShopError(Exception):
    """Base exception for record shop errors."""
    pass


class ConfigurationError(RecordShopError):
    """Raised when there's an error in configuration."""
    pass


class StorageError(RecordShopError):
    """Raised when the underlying store fails."""
    pass


class ExternalServiceError(RecordShopError):
    """Raised when an external metadata service fails."""
    pass
