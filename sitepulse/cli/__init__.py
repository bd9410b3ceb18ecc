# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for SitePulse.

Commands are organized into separate modules for maintainability:
- shared.py: Common utilities, constants, and helpers
- serve.py: Run the ingestion server
- stats.py: Show statistics from a running server
- simulate.py: Generate synthetic traffic
- config.py: Show effective configuration
"""

from sitepulse.cli.shared import (
    # Constants
    BOX_WIDTH,
    LOG_FORMAT,
    # Classes
    Box,
    Colors,
    Icons,
    # Aliases
    B,
    C,
    I,
    # Logging
    configure_logging,
)

__all__ = [
    # Constants
    "BOX_WIDTH",
    "LOG_FORMAT",
    # Classes
    "Box",
    "Colors",
    "Icons",
    # Aliases
    "B",
    "C",
    "I",
    # Logging
    "configure_logging",
]
