"""
Field Extractors - heuristic single-field lookups
Each lookup is an ordered list of strategies; the first non-empty result wins.
Strategies never raise to the caller: a miss or a parse failure is an empty value.
"""

import re
import logging
from typing import Any, Callable, Iterable, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .page_snapshot import PageSnapshot

logger = logging.getLogger(__name__)

# (page, element) -> value or None
Strategy = Callable[[PageSnapshot, Tag], Any]

OPTION_PLACEHOLDERS = {'choose', 'choisir', 'select', '--', 'default title'}

FIRST_LINE_LIMIT = 100

PLACEHOLDER_NAME_PATTERNS = [
    re.compile(r'^IMG_\d+$', re.IGNORECASE),
    re.compile(r'^DSC_\d+$', re.IGNORECASE),
    re.compile(r'^P\d+$', re.IGNORECASE),
    re.compile(r'^\d+\.jpg$', re.IGNORECASE),
]

PRICE_PATTERN = re.compile(r'\d+[,.]\d+|\d+')
# "." followed by exactly three digits reads as a thousands separator
THOUSANDS_DOT_PATTERN = re.compile(r'(?<=\d)\.(?=\d{3}(?!\d))')


def is_empty(value: Any) -> bool:
    """None, blank strings and empty collections count as a miss"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def first_match(
    strategies: Iterable[Strategy],
    page: PageSnapshot,
    element: Tag,
    default: Any = None
) -> Any:
    """
    Evaluate strategies in order and return the first non-empty result

    Args:
        strategies: Ordered strategy functions (most specific first)
        page: Page handle
        element: Element the lookup is scoped to
        default: Returned when every strategy misses

    Returns:
        First non-empty strategy result, or default
    """
    for strategy in strategies:
        try:
            value = strategy(page, element)
        except Exception as e:
            logger.debug(f"Lookup strategy {getattr(strategy, '__name__', strategy)} failed: {e}")
            continue
        if not is_empty(value):
            return value
    return default


def clean_text(text: Optional[str]) -> str:
    """Collapse whitespace runs to single spaces"""
    if not text:
        return ''
    return re.sub(r'\s+', ' ', text).strip()


def clean_html(text: Optional[str]) -> str:
    """Strip HTML tags and collapse whitespace"""
    if not text:
        return ''
    if '<' not in text:
        return clean_text(text)
    soup = BeautifulSoup(text, 'html.parser')
    return clean_text(soup.get_text(' '))


def make_absolute_url(url: Optional[str], base_url: str) -> str:
    """
    Resolve a possibly relative URL against base_url

    Returns:
        Absolute URL, or '' for empty/unusable input
    """
    if not url:
        return ''
    url = url.strip()
    if url.startswith(('javascript:', 'data:', '#', 'mailto:')):
        return ''
    if url.startswith(('http://', 'https://')):
        return url
    if url.startswith('//'):
        return f"https:{url}"
    if not base_url:
        return url
    return urljoin(base_url, url)


def parse_price(text: Optional[str]) -> float:
    """
    Parse a price out of display text

    Handles '.' and ',' as decimal separators. A '.' followed by exactly
    three digits is treated as a thousands separator, so '1.234' parses as
    1234 (ambiguous without locale). Space-separated thousands are not
    handled: '1 234,56' parses as 1.0.

    Returns:
        Price as float, 0.0 when nothing parses
    """
    if not text:
        return 0.0
    normalized = THOUSANDS_DOT_PATTERN.sub('', str(text))
    match = PRICE_PATTERN.search(normalized)
    if not match:
        return 0.0
    try:
        return float(match.group(0).replace(',', '.'))
    except ValueError:
        logger.debug(f"Unparseable price text: {text!r}")
        return 0.0


def parse_cents(value: Any) -> float:
    """Convert a platform price in integer cents to major units"""
    if value is None or value == '':
        return 0.0
    try:
        cents = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Unparseable cents value: {value!r}")
        return 0.0
    if cents < 0:
        return 0.0
    return round(cents / 100, 2)


def is_placeholder_name(name: Optional[str]) -> bool:
    """True for camera/file names like IMG_1234, DSC_0042, P1010, 123.jpg"""
    if not name:
        return False
    name = name.strip()
    return any(pattern.match(name) for pattern in PLACEHOLDER_NAME_PATTERNS)


# ---------------------------------------------------------------------------
# Strategy factories
# ---------------------------------------------------------------------------

def select_text(selector: str) -> Strategy:
    """Strategy: collapsed text of the first element matching selector"""
    def strategy(page: PageSnapshot, element: Tag) -> str:
        match = element.select_one(selector)
        if match is None:
            return ''
        return clean_text(match.get_text(' '))
    strategy.__name__ = f"select_text({selector})"
    return strategy


def own_first_line(limit: int = FIRST_LINE_LIMIT) -> Strategy:
    """Strategy: the element's own first line of text, length-capped"""
    def strategy(page: PageSnapshot, element: Tag) -> str:
        text = element.get_text().strip()
        if not text:
            return ''
        first_line = text.split('\n')[0].strip()
        if len(first_line) > limit:
            return first_line[:limit] + '...'
        return first_line
    return strategy


def select_attribute(selector: str, attribute: str, tag_name: Optional[str] = None) -> Strategy:
    """
    Strategy: attribute of the first element matching selector, or of a
    nested tag_name inside it when the match itself lacks the attribute
    """
    def strategy(page: PageSnapshot, element: Tag) -> str:
        match = element.select_one(selector)
        if match is None:
            return ''
        value = match.get(attribute)
        if value:
            return value
        if tag_name:
            nested = match.find(tag_name)
            if nested is not None:
                return nested.get(attribute) or ''
        return ''
    strategy.__name__ = f"select_attribute({selector}@{attribute})"
    return strategy


def own_attribute(attribute: str) -> Strategy:
    """Strategy: attribute of the element itself"""
    def strategy(page: PageSnapshot, element: Tag) -> str:
        return element.get(attribute) or ''
    strategy.__name__ = f"own_attribute({attribute})"
    return strategy


def tag_attribute(tag_name: str, attribute: str) -> Strategy:
    """Strategy: attribute of the element itself or its first tag_name descendant"""
    def strategy(page: PageSnapshot, element: Tag) -> str:
        if element.name == tag_name and element.get(attribute):
            return element.get(attribute)
        nested = element.find(tag_name)
        if nested is None:
            return ''
        return nested.get(attribute) or ''
    return strategy


def _is_placeholder_option(value: str) -> bool:
    return value.strip().lower() in OPTION_PLACEHOLDERS


def _unique(values: Iterable[str]) -> List[str]:
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def select_options(selector: str) -> Strategy:
    """Strategy: option texts of a <select>-like control matching selector"""
    def strategy(page: PageSnapshot, element: Tag) -> List[str]:
        control = element.select_one(selector)
        if control is None:
            return []
        values = []
        for option in control.find_all('option'):
            value = clean_text(option.get_text()) or (option.get('value') or '').strip()
            if value and not _is_placeholder_option(value):
                values.append(value)
        return _unique(values)
    strategy.__name__ = f"select_options({selector})"
    return strategy


def swatch_options(selector: str) -> Strategy:
    """Strategy: text or title/data-value/value of list and swatch children"""
    def strategy(page: PageSnapshot, element: Tag) -> List[str]:
        items = element.select(f"{selector} li, {selector} .swatch, {selector} [data-value]")
        values = []
        for item in items:
            value = clean_text(item.get_text())
            if not value:
                value = (item.get('title') or item.get('data-value') or item.get('value') or '').strip()
            if value and not _is_placeholder_option(value):
                values.append(value)
        return _unique(values)
    strategy.__name__ = f"swatch_options({selector})"
    return strategy


# ---------------------------------------------------------------------------
# Field lookups
# ---------------------------------------------------------------------------

def extract_text(page: PageSnapshot, element: Tag, selectors: List[str], fallback_to_own_text: bool = True) -> str:
    """
    Text of the first matching selector, falling back to the element's first line

    Returns:
        Extracted text or ''
    """
    strategies = [select_text(selector) for selector in selectors]
    if fallback_to_own_text:
        strategies.append(own_first_line())
    return first_match(strategies, page, element, default='')


def extract_attribute(
    page: PageSnapshot,
    element: Tag,
    tag_name: str,
    attribute: str,
    selectors: List[str]
) -> str:
    """
    Attribute from the first matching selector (or a nested tag_name inside it),
    falling back to the first tag_name in the element

    Returns:
        Attribute value or ''
    """
    strategies = [select_attribute(selector, attribute, tag_name) for selector in selectors]
    strategies.append(tag_attribute(tag_name, attribute))
    return first_match(strategies, page, element, default='')


def extract_options(page: PageSnapshot, element: Tag, selectors: List[str]) -> List[str]:
    """
    Option values (sizes, colors) from select controls or swatch lists

    Returns the first non-empty list found; lists from different strategies
    are never concatenated.
    """
    strategies = []
    for selector in selectors:
        strategies.append(select_options(selector))
        strategies.append(swatch_options(selector))
    return first_match(strategies, page, element, default=[])
