# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the SitePulse CLI.

Shows the effective settings after environment variables and .env are applied.
"""

import json
from typing import Annotated

import typer

from sitepulse.cli.shared import C
from sitepulse.utils.config import get_settings
from sitepulse.utils.versions import get_sitepulse_version


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    # JSON output mode
    if json_output:
        config = {
            "version": get_sitepulse_version(),
            "server": {
                "host": settings.server.host,
                "port": settings.server.port,
                "base_url": settings.server.base_url,
            },
            "store": settings.store.model_dump(),
            "tracker": settings.tracker.model_dump(mode="json"),
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "db": settings.valkey.db,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
                "key_prefix": settings.valkey.key_prefix,
            },
            "log_level": settings.log_level,
            "debug": settings.debug,
        }
        print(json.dumps(config, indent=2))
        return

    # Human-readable output
    print()
    print(f"{C.BOLD}Configuration{C.RESET}  {C.DIM}sitepulse v{get_sitepulse_version()}{C.RESET}")
    print()

    # Server
    print(f"{C.CYAN}Server{C.RESET}")
    print(f"  Listen:     {C.WHITE}{settings.server.host}:{settings.server.port}{C.RESET}")
    print(f"  URL:        {C.WHITE}{settings.server.base_url}{C.RESET}")
    print()

    # Store
    store = settings.store
    print(f"{C.CYAN}Store{C.RESET}")
    print(f"  Log cap:    {C.WHITE}{store.max_log_entries:,} entries per log{C.RESET}")
    print(
        f"  Report:     {C.WHITE}{store.recent_events} recent events, "
        f"top {store.top_pages} pages, {store.recent_sessions} sessions{C.RESET}"
    )
    print()

    # Tracker
    tracker = settings.tracker
    print(f"{C.CYAN}Tracker{C.RESET}")
    print(f"  Endpoint:   {C.WHITE}{tracker.endpoint}{C.RESET}")
    print(
        f"  Batching:   {C.WHITE}{tracker.batch_size} events or "
        f"{tracker.batch_timeout_ms} ms{C.RESET}"
    )
    print(f"  Session:    {C.WHITE}{tracker.session_timeout_minutes} minute timeout{C.RESET}")
    print(f"  Heartbeat:  {C.WHITE}every {tracker.heartbeat_interval_seconds:g}s{C.RESET}")
    if tracker.storage_backend == "file":
        storage = f"file ({tracker.storage_file})"
    elif tracker.storage_backend == "valkey":
        storage = f"valkey ({settings.valkey.host}:{settings.valkey.port})"
    else:
        storage = tracker.storage_backend
    print(f"  Storage:    {C.WHITE}{storage}{C.RESET}")
    print()

    print(f"{C.CYAN}Logging{C.RESET}")
    print(f"  Level:      {C.WHITE}{settings.log_level}{C.RESET}")
    print()
