"""
FastAPI dependencies.

The application factory stores the RetentionTriggers on ``app.state``;
routes receive them through these helpers.
"""

from fastapi import Request

from build_retention.triggers import RetentionTriggers


def get_triggers(request: Request) -> RetentionTriggers:
    """Return the triggers bound to the running application."""
    return request.app.state.triggers
