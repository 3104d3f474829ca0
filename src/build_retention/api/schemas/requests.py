"""
Pydantic request schemas for API endpoints.
"""

from pydantic import BaseModel, Field


class ItemEventRequest(BaseModel):
    """Storage event notification sent by the repository manager."""

    repo_key: str = Field(min_length=1, description="Repository holding the item")
    path: str = Field(default="", description="Item path relative to the repository root")
