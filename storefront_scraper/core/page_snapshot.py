"""
Page Snapshot - the page handle passed to every extractor
Captures one loaded page so extraction never touches live browser state
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

# Keys of PageSnapshot.globals
ANALYTICS_META = 'shopify_analytics_meta'
PLATFORM_PRESENT = 'shopify_present'


@dataclass
class PageSnapshot:
    """
    HTML, title, final URL and selected window globals of one page load
    """
    url: str
    html: str
    title: str = ''
    globals: Dict[str, Any] = field(default_factory=dict)
    _soup: Optional[BeautifulSoup] = field(default=None, init=False, repr=False, compare=False)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html or '', 'html.parser')
        return self._soup

    @property
    def origin(self) -> str:
        parsed = urlparse(self.url)
        if not parsed.scheme or not parsed.netloc:
            return ''
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def hostname(self) -> str:
        return urlparse(self.url).hostname or ''

    @property
    def path(self) -> str:
        return urlparse(self.url).path or '/'

    @classmethod
    def from_html(cls, url: str, html: str, globals: Optional[Dict[str, Any]] = None) -> 'PageSnapshot':
        """Build a snapshot from raw HTML, reading the title from the document"""
        snapshot = cls(url=url, html=html, globals=dict(globals or {}))
        title_tag = snapshot.soup.find('title')
        if title_tag:
            snapshot.title = title_tag.get_text(strip=True)
        return snapshot
