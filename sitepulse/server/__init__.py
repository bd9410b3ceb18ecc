# ==============================================================================
# Ingestion Server Package
# ==============================================================================
"""
HTTP surface of SitePulse: event ingestion and statistics endpoints.
"""

from sitepulse.server.api import CORS_HEADERS, create_app

__all__ = [
    "CORS_HEADERS",
    "create_app",
]
