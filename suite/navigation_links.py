"""
Top-level category links exercised by the navigation monitor, plus the
selectors used to decide whether a category page rendered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NavigationLink:
    name: str
    url: str
    selector: Optional[str] = None


TOP_LEVEL_NAVIGATION_LINKS: tuple[NavigationLink, ...] = (
    NavigationLink(
        "Early Black Friday",
        "/photo-gifts/black-friday-special/",
        'nav a[href*="/black-friday-special"]',
    ),
    NavigationLink("Calendars", "/photo-calendars/", 'nav a[href*="/photo-calendars"]'),
    NavigationLink(
        "Gifts",
        "/photo-gifts/personalised-gifts-q/",
        'nav a[href*="/personalised-gifts-q"]',
    ),
    NavigationLink("Photo Books", "/photo-books-q/", 'nav a[href*="/photo-books-q"]'),
    NavigationLink("Blankets", "/photo-blankets/", 'nav a[href*="/photo-blankets"]'),
    NavigationLink(
        "Canvas Prints",
        "/photo-gifts/canvas-photo-prints/",
        'nav a[href*="/canvas-photo-prints"]',
    ),
    NavigationLink("Photo Printing", "/photo-prints/", 'nav a[href*="/photo-prints"]'),
    NavigationLink("Wall Art", "/photo-wall-art/", 'nav a[href*="/photo-wall-art"]'),
)

# Menu entries that are groupings or off-catalog pages, never monitored.
EXCLUDED_LINKS: frozenset[str] = frozenset({"Home Decor", "Occasions", "All Categories", "Blog"})

MAIN_CONTENT_SELECTOR = 'main.relative, main[class*="relative"]'
MENU_BURGER_SELECTOR = '#menu-burger, button[aria-label*="menu"]'
NAV_CONTAINER_SELECTOR = "nav"
NAV_LINKS_SELECTOR = 'nav a[href^="/"]'

MIN_PAGE_HEIGHT = 500

PRODUCT_ELEMENT_SELECTORS: tuple[str, ...] = (
    ".product-card",
    "[data-product]",
    ".grid-item",
    '[class*="product"]',
    "article",
    ".product",
    '[data-testid*="product"]',
)
