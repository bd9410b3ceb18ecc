# ==============================================================================
# SitePulse CLI
# ==============================================================================
"""
Command-line interface for the SitePulse analytics pipeline.

Usage:
    sitepulse --help
    sitepulse --version
    sitepulse serve --port 3000
    sitepulse stats
    sitepulse stats --json
    sitepulse simulate --visitors 50
    sitepulse config show
"""

import os
from typing import Annotated, Optional

import typer

from sitepulse.utils.versions import get_sitepulse_version

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="sitepulse",
    help="SitePulse behavioral analytics CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        print(f"sitepulse {get_sitepulse_version()}")
        raise typer.Exit()


@app.callback()
def _main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit",
        ),
    ] = None,
) -> None:
    """SitePulse behavioral analytics CLI."""


# Serve command is imported from sitepulse.cli.serve
from sitepulse.cli.serve import serve

app.command("serve")(serve)

# Stats command is imported from sitepulse.cli.stats
from sitepulse.cli.stats import show_stats

app.command("stats")(show_stats)

# Simulate command is imported from sitepulse.cli.simulate
from sitepulse.cli.simulate import simulate

app.command("simulate")(simulate)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

# Register config commands from cli.config module
from sitepulse.cli.config import config_show

config_app.command("show")(config_show)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
