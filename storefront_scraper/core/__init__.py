"""Core scraping modules"""

from .scraper import ProductScraper
from .browser_driver import BrowserDriver
from .fragment_builder import FragmentBuilder
from .reconciler import ProductReconciler
from .quality_calculator import QualityCalculator
from .enrichment import EnrichmentController
from .structured_data import StructuredDataExtractor
from .page_snapshot import PageSnapshot

__all__ = [
    "ProductScraper",
    "BrowserDriver",
    "FragmentBuilder",
    "ProductReconciler",
    "QualityCalculator",
    "EnrichmentController",
    "StructuredDataExtractor",
    "PageSnapshot",
]
