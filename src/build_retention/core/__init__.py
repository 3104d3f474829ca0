"""
Build Retention Core Module.

Provides the exception hierarchy shared by the policy engine and its collaborators.
"""

__all__ = [
    "RetentionError",
    "ConfigurationError",
    "LookupFailure",
    "ItemNotFoundError",
    "ServiceOperationError",
    "UnrecognizedActionError",
    "format_exception",
]

from build_retention.core.exceptions import (
    ConfigurationError,
    ItemNotFoundError,
    LookupFailure,
    RetentionError,
    ServiceOperationError,
    UnrecognizedActionError,
    format_exception,
)
