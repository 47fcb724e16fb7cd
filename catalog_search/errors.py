"""
Custom domain exceptions for the entire system.
Every error has a name, not chaos.
"""


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


class IngestionError(Exception):
    """Raised when a catalog cannot be ingested at all."""
    pass


class EmptyCatalogError(IngestionError):
    """Raised when the input has no header or no data rows."""
    pass


class NormalizationError(Exception):
    """Raised when a raw catalog row cannot be normalized."""
    pass


class NetworkError(Exception):
    """Base class for network-related failures."""
    pass


class ExternalServiceError(Exception):
    """Raised when the remote catalog source fails."""
    pass


class RetryExhaustedError(ExternalServiceError):
    """Raised when all retry attempts for an external service are exhausted."""
    pass


class SearchError(Exception):
    """Raised when search input has no defined fallback."""
    pass
