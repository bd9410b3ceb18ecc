# ==============================================================================
# Serve Command
# ==============================================================================
"""
Serve command for the SitePulse CLI.

Runs the ingestion API under uvicorn in the foreground. The aggregation
store lives in the server process, so stopping the server discards all
recorded data.
"""

import logging
from typing import Annotated, Optional

import typer

from sitepulse.cli.shared import C, I, configure_logging
from sitepulse.utils.config import get_settings

logger = logging.getLogger(__name__)


# ==============================================================================
# Commands
# ==============================================================================


def serve(
    host: Annotated[
        Optional[str], typer.Option("--host", help="Bind address (default: SERVER_HOST)")
    ] = None,
    port: Annotated[
        Optional[int], typer.Option("--port", "-p", help="Listen port (default: SERVER_PORT)")
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", "-l", help="Log level (default: LOG_LEVEL)")
    ] = None,
) -> None:
    """Run the ingestion server.

    Examples:
        sitepulse serve                  # 0.0.0.0:3000
        sitepulse serve --port 8080
        sitepulse serve --log-level debug
    """
    import uvicorn

    from sitepulse.server import create_app

    settings = get_settings()
    host = host or settings.server.host
    port = port or settings.server.port
    level = (log_level or settings.log_level).upper()

    configure_logging(level)

    display_host = "localhost" if host in ("0.0.0.0", "") else host
    print(f"\n{C.BRIGHT_GREEN}{I.PULSE}{C.RESET} SitePulse server at {C.WHITE}http://{display_host}:{port}/{C.RESET}")
    print(f"  {I.ARROW} Track:  POST http://{display_host}:{port}/api/track")
    print(f"  {I.ARROW} Stats:  GET  http://{display_host}:{port}/api/stats")
    print(f"  {C.DIM}Press Ctrl+C to stop{C.RESET}\n")

    app = create_app(settings=settings)
    logger.info("Starting SitePulse server on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=level.lower(), log_config=None)
