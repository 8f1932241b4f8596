"""
Scraper exceptions

Only navigation failures are modelled as exceptions. A selector that matches
nothing or a value that fails to parse is represented by an empty value.
"""

from typing import Optional


class ScraperError(Exception):
    """Base class for storefront scraper errors"""


class NavigationError(ScraperError):
    """
    Raised when a page cannot be loaded (network failure, DNS failure,
    non-2xx response)
    """

    def __init__(self, url: str, message: str = "", status: Optional[int] = None):
        self.url = url
        self.status = status
        detail = message or (f"HTTP {status}" if status is not None else "navigation failed")
        super().__init__(f"Failed to load {url}: {detail}")
