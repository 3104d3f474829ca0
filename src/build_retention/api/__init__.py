"""
Build Retention API Module.

REST surface for batch cleanup and storage event delivery.
"""

from build_retention.api.app import create_app

__all__ = ["create_app"]
