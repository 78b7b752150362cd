"""
Core business exceptions for the backup retriever.

This module defines a hierarchy of custom exceptions to allow for granular
error handling and clear separation of failure domains.
"""


class RetrieverError(Exception):
    """Base exception for all component-specific errors."""
    pass


# --- Configuration Errors ---

class ConfigurationError(RetrieverError):
    """Raised for missing or invalid configuration values."""
    pass


# --- Infrastructure Errors ---

class InfrastructureError(RetrieverError):
    """Base class for errors related to external systems (database, network)."""
    pass


class StoreError(InfrastructureError):
    """Raised when querying the package store fails."""
    pass


class StoreConnectionError(StoreError):
    """Raised when the package store is unreachable or rejects the client."""
    pass


class DownloadError(InfrastructureError):
    """Raised when a backup file download fails."""
    pass


class OutputDirectoryError(InfrastructureError):
    """Raised when the output directory cannot be created."""
    pass


# --- Domain/Business Logic Errors ---

class DomainError(RetrieverError):
    """Base class for errors related to business logic failures."""
    pass


class PackageNotFoundError(DomainError):
    """Raised when no package exists for an agency and period."""
    pass


class InvalidBackupError(DomainError):
    """Raised when a backup descriptor cannot be mapped to a local file."""
    pass
