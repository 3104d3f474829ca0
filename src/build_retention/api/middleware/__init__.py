"""
API middleware.
"""

from build_retention.api.middleware.logging import RequestLoggingMiddleware, annotate

__all__ = ["RequestLoggingMiddleware", "annotate"]
