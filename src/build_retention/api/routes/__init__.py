"""
API route handlers.

This package contains all route definitions for the Build Retention API.
"""

from build_retention.api.routes import cleanup, events, health

__all__ = [
    "cleanup",
    "events",
    "health",
]
