"""
Storefront Scraper
Extracts, reconciles and scores product data from e-commerce storefronts
"""

__version__ = "1.0.0"

from .core.config import ScrapeOptions, ScraperSettings
from .core.models import CanonicalProduct, ProductFragment, ProductVariant
from .core.scraper import ProductScraper

__all__ = [
    "ProductScraper",
    "ScrapeOptions",
    "ScraperSettings",
    "CanonicalProduct",
    "ProductFragment",
    "ProductVariant",
]
