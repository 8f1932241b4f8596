"""
Scraper configuration
Per-invocation options and process-level settings (with environment fallbacks)
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_PRODUCTS = 100
DEFAULT_MAX_ENRICH = 5
DEFAULT_COMPLETE_THRESHOLD = 70

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class ScrapeOptions:
    """
    Options for one scrape invocation
    """
    product_selector: Optional[str] = None  # CSS override for product containers
    max_products: int = DEFAULT_MAX_PRODUCTS
    scroll_to_load: bool = True  # Scroll before extracting to trigger lazy loading
    wait_for_selector: Optional[str] = None
    min_quality: int = 0  # Drop products scoring below this

    def __post_init__(self):
        if self.max_products <= 0:
            raise ValueError(f"max_products must be positive, got {self.max_products}")
        if not 0 <= self.min_quality <= 100:
            raise ValueError(f"min_quality must be between 0 and 100, got {self.min_quality}")


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in ('0', 'false', 'no', 'off', '')


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


@dataclass
class ScraperSettings:
    """
    Process-level settings shared by every scrape run by one ProductScraper
    """
    headless: bool = True
    browser_timeout: int = 60000  # Navigation timeout in milliseconds
    network_idle_timeout: int = 10000
    max_enrich: int = DEFAULT_MAX_ENRICH
    complete_threshold: int = DEFAULT_COMPLETE_THRESHOLD
    output_dir: str = './data'

    def __post_init__(self):
        if self.browser_timeout <= 0 or self.network_idle_timeout < 0:
            raise ValueError("Timeouts must be positive")
        if self.max_enrich < 0:
            raise ValueError(f"max_enrich cannot be negative, got {self.max_enrich}")
        if not 0 <= self.complete_threshold <= 100:
            raise ValueError(f"complete_threshold must be between 0 and 100, got {self.complete_threshold}")

    @classmethod
    def from_env(cls) -> 'ScraperSettings':
        """Build settings from STOREFRONT_* environment variables"""
        settings = cls(
            headless=_env_bool('STOREFRONT_HEADLESS', True),
            browser_timeout=_env_int('STOREFRONT_BROWSER_TIMEOUT', 60000),
            network_idle_timeout=_env_int('STOREFRONT_NETWORK_IDLE_TIMEOUT', 10000),
            max_enrich=_env_int('STOREFRONT_MAX_ENRICH', DEFAULT_MAX_ENRICH),
            complete_threshold=_env_int('STOREFRONT_COMPLETE_THRESHOLD', DEFAULT_COMPLETE_THRESHOLD),
            output_dir=os.environ.get('STOREFRONT_OUTPUT_DIR', './data'),
        )
        logger.debug(f" Settings loaded from environment: {settings}")
        return settings
