# ==============================================================================
# Version
# ==============================================================================
"""
Installed version of sitepulse, shown by ``--version``, ``config show`` and
the default tracker user agent.
"""

from importlib.metadata import PackageNotFoundError, version

# Reported when running from a source checkout that was never installed
UNINSTALLED_VERSION = "0.0.0+local"


def get_sitepulse_version() -> str:
    try:
        return version("sitepulse")
    except PackageNotFoundError:
        return UNINSTALLED_VERSION
