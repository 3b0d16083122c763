from __future__ import annotations


class FlakeRegistryError(Exception):
    """Base class for failures that end the current request."""


class StorageError(FlakeRegistryError):
    """Raised when the relational store is unreachable or a query fails."""


class ExternalServiceError(FlakeRegistryError):
    """Raised when the search engine is unreachable or returns an unparseable response."""
