# ==============================================================================
# Simulate Command
# ==============================================================================
"""
Simulate command for the SitePulse CLI.

Drives one Tracker per synthetic visitor against a running server: each
visitor lands on a page, browses a few more, scrolls and clicks on every
page, and ends its session. Useful for demos and for smoke-testing a
deployment end to end.
"""

import random
from typing import Annotated, Optional

import typer

from sitepulse.cli.shared import C, I
from sitepulse.client import ClientContext, Tracker
from sitepulse.infrastructure.storage import MemoryStorage
from sitepulse.utils.config import get_settings

SITE_URL = "https://shop.example.com"

PAGES = [
    ("/", "Home"),
    ("/products", "Products"),
    ("/products/widget", "Widget"),
    ("/pricing", "Pricing"),
    ("/blog", "Blog"),
    ("/about", "About Us"),
    ("/contact", "Contact"),
]

CLICK_TARGETS = [
    ("BUTTON", "Add to cart", "add-to-cart", "btn btn-primary"),
    ("A", "Read more", "", "link"),
    ("BUTTON", "Sign up", "signup", "btn"),
    ("A", "Pricing", "nav-pricing", "nav-link"),
]

SCREENS = [(1920, 1080, 1903, 969), (1440, 900, 1440, 789), (390, 844, 390, 664)]


# ==============================================================================
# Helpers
# ==============================================================================


def simulate_visitor(tracker: Tracker, pages: int, rng: random.Random) -> int:
    """
    Run one synthetic visit through a tracker.

    Args:
        tracker: Tracker for the visitor (not yet started)
        pages: Number of pages to view
        rng: Random source

    Returns:
        Number of events tracked, including session_end
    """
    path, title = rng.choice(PAGES)
    tracker.context.url = f"{SITE_URL}{path}"
    tracker.start(title=title)

    for page_number in range(pages):
        if page_number > 0:
            path, title = rng.choice(PAGES)
            tracker.navigate(f"{SITE_URL}{path}", title=title)

        tracker.track_scroll(rng.choice([10, 30, 55, 80, 95, 100]))
        for _ in range(rng.randint(0, 3)):
            element, text, element_id, class_name = rng.choice(CLICK_TARGETS)
            tracker.track_click(element, text=text, element_id=element_id, class_name=class_name)

    tracker.end_session()
    return tracker.events_tracked


# ==============================================================================
# Commands
# ==============================================================================


def simulate(
    endpoint: Annotated[
        Optional[str],
        typer.Option("--endpoint", "-e", help="Track endpoint (default: TRACKER_ENDPOINT)"),
    ] = None,
    visitors: Annotated[
        int, typer.Option("--visitors", "-n", min=1, help="Number of visitors to simulate")
    ] = 10,
    pages: Annotated[
        int, typer.Option("--pages", "-p", min=1, help="Pages viewed per visitor")
    ] = 3,
    seed: Annotated[
        Optional[int], typer.Option("--seed", help="Random seed for reproducible traffic")
    ] = None,
) -> None:
    """Generate synthetic traffic against a running server.

    Examples:
        sitepulse simulate                          # 10 visitors, 3 pages each
        sitepulse simulate -n 100 -p 5
        sitepulse simulate --endpoint http://analytics:3000/api/track
    """
    settings = get_settings()
    if endpoint:
        tracker_settings = settings.tracker.model_copy(update={"endpoint": endpoint})
        settings = settings.model_copy(update={"tracker": tracker_settings})

    rng = random.Random(seed)
    total_events = 0

    print(f"\n{C.BRIGHT_CYAN}{I.PULSE}{C.RESET} Simulating {visitors} visitors against {settings.tracker.endpoint}")

    for _ in range(visitors):
        width, height, vw, vh = rng.choice(SCREENS)
        context = ClientContext(
            screen_width=width,
            screen_height=height,
            viewport_width=vw,
            viewport_height=vh,
        )
        tracker = Tracker.from_settings(
            settings,
            context=context,
            durable_storage=MemoryStorage(),
        )
        try:
            total_events += simulate_visitor(tracker, pages, rng)
        finally:
            tracker.close()

    print(f"  {C.BRIGHT_GREEN}{I.CHECK}{C.RESET} Tracked {total_events:,} events for {visitors} visitors\n")
