"""
Build Retention - retention and archival policy engine for artifact repositories.

Keeps the most recent builds per artifact path, archives or deletes the rest,
and removes snapshot builds once the matching release is published.
"""

__version__ = "0.1.0"

# API module is available but not exported by default
# Import explicitly: from build_retention.api import create_app

__all__ = ["__version__"]
