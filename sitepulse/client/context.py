# ==============================================================================
# Client Environment Context
# ==============================================================================
"""
Environment fields stamped on every tracked event: where the client is
(url, path, referrer) and what it is (user agent, screen, viewport).
"""

import platform
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from sitepulse.utils.versions import get_sitepulse_version


def default_user_agent() -> str:
    """User agent string identifying this library and the host platform."""
    return (
        f"sitepulse-python/{get_sitepulse_version()} "
        f"({platform.system()} {platform.release()}; Python {platform.python_version()})"
    )


class ClientContext(BaseModel):
    """
    Mutable description of the page the client is on.

    Attributes:
        url: Full URL of the current page
        referrer: URL of the previous page, or empty
        user_agent: Client user agent
        screen_width, screen_height: Screen size in pixels
        viewport_width, viewport_height: Visible area in pixels
    """

    url: str = ""
    referrer: str = ""
    user_agent: str = Field(default_factory=default_user_agent)
    screen_width: int = 0
    screen_height: int = 0
    viewport_width: int = 0
    viewport_height: int = 0

    @property
    def path(self) -> str:
        """Path component of the URL (``/`` when the URL has none)."""
        if not self.url:
            return ""
        return urlsplit(self.url).path or "/"

    @property
    def screen_resolution(self) -> str:
        return f"{self.screen_width}x{self.screen_height}"

    @property
    def viewport(self) -> str:
        return f"{self.viewport_width}x{self.viewport_height}"

    def event_fields(self) -> dict:
        """Fields merged into every Event built from this context."""
        return {
            "url": self.url,
            "path": self.path,
            "referrer": self.referrer,
            "user_agent": self.user_agent,
            "screen_resolution": self.screen_resolution,
            "viewport": self.viewport,
        }
