# ==============================================================================
# Stats Command
# ==============================================================================
"""
Stats command for the SitePulse CLI.

Fetches GET /api/stats from a running server and renders it as a boxed
summary, or prints the raw report as JSON.
"""

import json
import logging
from typing import Annotated, Optional

import requests
import typer

from sitepulse.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header,
    _truncate,
)
from sitepulse.utils.config import get_settings
from sitepulse.utils.retry import HTTP_RETRY_EXCEPTIONS, retry_light

logger = logging.getLogger(__name__)

STATS_PATH = "/api/stats"
REQUEST_TIMEOUT = 10  # seconds


# ==============================================================================
# Helpers
# ==============================================================================


@retry_light(HTTP_RETRY_EXCEPTIONS, logger)
def fetch_stats(base_url: str) -> dict:
    """
    Fetch the statistics report from a SitePulse server.

    Retries connection errors and timeouts with exponential backoff.

    Args:
        base_url: Server base URL (e.g. ``http://localhost:3000``)

    Returns:
        Decoded report

    Raises:
        requests.exceptions.RequestException: If the server stays unreachable
            or answers with an error status
    """
    response = requests.get(f"{base_url.rstrip('/')}{STATS_PATH}", timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()


def render_stats(report: dict) -> list[str]:
    """Build the boxed summary lines for a statistics report."""
    W = BOX_WIDTH
    lines = [_box_header("SitePulse Statistics", W), _empty_line(W)]

    overview = report.get("overview", {})
    lines.append(_section_header("Overview", I.PULSE, W))
    for label, key in (
        ("Events", "totalEvents"),
        ("Page views", "totalPageViews"),
        ("Clicks", "totalClicks"),
        ("Sessions", "totalSessions"),
        ("Users", "totalUsers"),
    ):
        lines.append(_box_line(f"  {label:<20}{C.WHITE}{overview.get(key, 0):>12,}{C.RESET}", W))
    lines.append(_empty_line(W))

    day = report.get("last24h", {})
    hour = report.get("lastHour", {})
    lines.append(_section_header("Activity", I.CLOCK, W))
    lines.append(_box_line(f"  {C.DIM}{'':<20}{'Last 24h':>12}{'Last hour':>12}{C.RESET}", W))
    for label, key in (
        ("Events", "events"),
        ("Page views", "pageViews"),
        ("Clicks", "clicks"),
        ("Scrolls", "scrolls"),
        ("Heartbeats", "heartbeats"),
        ("Sessions", "sessions"),
        ("Users", "users"),
    ):
        lines.append(_box_line(f"  {label:<20}{day.get(key, 0):>12,}{hour.get(key, 0):>12,}", W))
    lines.append(_empty_line(W))

    lines.append(_section_header("Top Pages", I.PAGE, W))
    top_pages = report.get("topPages", [])
    if not top_pages:
        lines.append(_box_line(f"  {C.DIM}No page views yet{C.RESET}", W))
    for entry in top_pages:
        page = _truncate(str(entry.get("page")), 46)
        lines.append(_box_line(f"  {page:<48}{C.WHITE}{entry.get('count', 0):>10,}{C.RESET}", W))
    lines.append(_empty_line(W))

    lines.append(_section_header("Scroll Depth", I.SCROLL, W))
    depths = report.get("scrollDepths", [])
    if not depths:
        lines.append(_box_line(f"  {C.DIM}No scroll events yet{C.RESET}", W))
    for entry in depths:
        depth = f"{entry.get('depth', 0)}%"
        lines.append(_box_line(f"  {depth:<48}{C.WHITE}{entry.get('count', 0):>10,}{C.RESET}", W))
    lines.append(_empty_line(W))

    lines.append(_box_bottom(W))
    return lines


# ==============================================================================
# Commands
# ==============================================================================


def show_stats(
    url: Annotated[
        Optional[str],
        typer.Option("--url", "-u", help="Server base URL (default: from SERVER_HOST/SERVER_PORT)"),
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show statistics from a running SitePulse server.

    Examples:
        sitepulse stats                                # Formatted summary
        sitepulse stats --json                         # Raw report as JSON
        sitepulse stats --url http://analytics:3000
    """
    base_url = url or get_settings().server.base_url

    try:
        report = fetch_stats(base_url)
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.debug("Stats request to %s failed: %s", base_url, e)
        if json_output:
            print(json.dumps({"error": f"Server unreachable at {base_url}"}))
        else:
            print(f"\n{C.BRIGHT_RED}{I.CROSS} Server unreachable at {base_url}{C.RESET}\n")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(report, indent=2))
        return

    print()
    for line in render_stats(report):
        print(line)
    print()
