"""
API request and response schemas.
"""

from build_retention.api.schemas.exceptions import (
    APIException,
    NoRepositoriesError,
    UnknownItemError,
    error_body,
)
from build_retention.api.schemas.requests import ItemEventRequest
from build_retention.api.schemas.responses import (
    CleanupResponse,
    HealthResponse,
    ItemEventResponse,
    RepositoryCleanupSummary,
)

__all__ = [
    "APIException",
    "NoRepositoriesError",
    "UnknownItemError",
    "error_body",
    "ItemEventRequest",
    "CleanupResponse",
    "HealthResponse",
    "ItemEventResponse",
    "RepositoryCleanupSummary",
]
