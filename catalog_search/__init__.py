"""
Catalog Search - in-memory product search and ranking over catalog exports.
"""

__version__ = "1.0.0"
__author__ = "Engineering Team"

# Export main components for easy import
from catalog_search.config import config
from catalog_search.logger import logger
from catalog_search.errors import (
    ConfigError,
    IngestionError,
    EmptyCatalogError,
    NormalizationError,
    NetworkError,
    ExternalServiceError,
    RetryExhaustedError,
    SearchError
)

__all__ = [
    'config',
    'logger',
    'ConfigError',
    'IngestionError',
    'EmptyCatalogError',
    'NormalizationError',
    'NetworkError',
    'ExternalServiceError',
    'RetryExhaustedError',
    'SearchError'
]
