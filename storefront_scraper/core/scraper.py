"""
Storefront Scraper - Main orchestration class
Coordinates the extraction pipeline for one storefront URL
"""

import asyncio
import logging
from typing import List, Optional

from bs4 import Tag

from .browser_driver import BrowserDriver
from .config import LOG_FORMAT, ScrapeOptions, ScraperSettings
from .enrichment import EnrichmentController
from .fragment_builder import FragmentBuilder, PROFILE_CARD, PROFILE_DETAIL
from .models import CanonicalProduct, ProductFragment
from .page_snapshot import PageSnapshot
from .quality_calculator import QualityCalculator
from .reconciler import ProductReconciler
from .site_detector import SHOPIFY, WOOCOMMERCE, GENERIC, detect_site_type, is_product_page
from .structured_data import StructuredDataExtractor

logger = logging.getLogger(__name__)

# Product container selectors per platform, most specific first
PRODUCT_CONTAINER_SELECTORS = {
    SHOPIFY: ['.grid__item', '.grid-item', '.product-card', '[data-product-id]'],
    WOOCOMMERCE: ['li.product', '.type-product', '.product'],
    GENERIC: [
        '.product-card', '.product', '.product-item', '.item', 'article[class*="product"]',
        '[class*="product-card"]', '[class*="product-item"]', '[data-product-id]',
        '[itemtype*="Product"]',
    ],
}

PRODUCT_LINK_SELECTOR = 'a[href*="/products/"], a[href*="/product/"]'

# Levels walked up from a product link to find its card
MAX_CONTAINER_DEPTH = 4


class ProductScraper:
    """
    Storefront product scraper

    Pipeline:
    1. Load the page (cookie banner, lazy-load scrolling)
    2. Structured platform data first, then DOM product elements
    3. Reconcile fragments into canonical products
    4. Score, then enrich incomplete products from their detail pages
    """

    def __init__(
        self,
        settings: Optional[ScraperSettings] = None,
        log_level: int = logging.INFO
    ):
        """
        Initialize Storefront Scraper

        Args:
            settings: Browser, enrichment and output settings (defaults to environment)
            log_level: Logging level
        """
        logging.basicConfig(
            level=log_level,
            format=LOG_FORMAT
        )

        self.settings = settings or ScraperSettings.from_env()
        self.structured = StructuredDataExtractor()
        self.builder = FragmentBuilder()
        self.reconciler = ProductReconciler()
        self.scorer = QualityCalculator(threshold=self.settings.complete_threshold)

    async def scrape(
        self,
        url: str,
        options: Optional[ScrapeOptions] = None,
        driver: Optional[BrowserDriver] = None
    ) -> List[CanonicalProduct]:
        """
        Scrape all products reachable from one storefront page

        Args:
            url: Listing or product page URL
            options: Per-invocation options
            driver: Started driver to reuse (a new one is launched and closed otherwise)

        Returns:
            Canonical products sorted by quality score descending

        Raises:
            NavigationError: the page itself could not be loaded
        """
        options = options or ScrapeOptions()
        owns_driver = driver is None
        if owns_driver:
            driver = BrowserDriver(self.settings)
            await driver.start()

        try:
            await driver.load(url, wait_for_selector=options.wait_for_selector)
            await driver.dismiss_cookie_banner()
            if options.scroll_to_load:
                await driver.stimulate_lazy_load()
            page = await driver.snapshot()

            products = self.extract_products(page, options)

            enricher = EnrichmentController(
                self.reconciler,
                self.scorer,
                self.extract_detail_fragments,
                max_candidates=self.settings.max_enrich,
                threshold=self.settings.complete_threshold,
            )
            products = await enricher.enrich(products, driver)
        finally:
            if owns_driver:
                await driver.close()

        if options.min_quality:
            kept = [p for p in products if p.quality_score >= options.min_quality]
            logger.info(f" Quality filter kept {len(kept)}/{len(products)} product(s)")
            products = kept

        products = sorted(products, key=lambda p: p.quality_score, reverse=True)[:options.max_products]
        logger.info(f" Scraped {len(products)} product(s) from {url}")
        return products

    def scrape_sync(self, url: str, options: Optional[ScrapeOptions] = None) -> List[CanonicalProduct]:
        """Blocking wrapper around scrape()"""
        return asyncio.run(self.scrape(url, options))

    def extract_products(self, page: PageSnapshot, options: Optional[ScrapeOptions] = None) -> List[CanonicalProduct]:
        """
        Fragments -> canonical products -> scores, without enrichment

        Returns:
            Scored canonical products, best first
        """
        fragments = self.extract_fragments(page, options or ScrapeOptions())
        products = self.reconciler.reconcile(fragments, base_url=page.url)
        for product in products:
            self.scorer.refresh(product)
        return sorted(products, key=lambda p: p.quality_score, reverse=True)

    def extract_detail_fragments(self, page: PageSnapshot) -> List[ProductFragment]:
        """Fragments of a page known to show one product, whatever its URL looks like"""
        return self.extract_fragments(page, ScrapeOptions(), product_page=True)

    def extract_fragments(
        self,
        page: PageSnapshot,
        options: ScrapeOptions,
        product_page: Optional[bool] = None
    ) -> List[ProductFragment]:
        """
        All product fragments on a page, structured sources first

        Args:
            page: Page handle
            options: Per-invocation options
            product_page: Treat the page as a single-product page (detected when None)

        Returns:
            Fragments in merge-priority order
        """
        if product_page is None:
            product_page = is_product_page(page)
        logger.info(f" Site type: {detect_site_type(page)}, product page: {product_page}")

        fragments: List[ProductFragment] = []
        for record in self.structured.extract(page, product_page)[:options.max_products]:
            fragment = self.builder.build_from_record(page, record)
            if fragment is not None:
                fragments.append(fragment)

        if product_page:
            document = page.soup.body or page.soup
            fragment = self.builder.build_from_element(page, document, PROFILE_DETAIL)
            if fragment is not None:
                fragments.append(fragment)
            return fragments

        elements = self.find_product_elements(page, options.product_selector)[:options.max_products]
        built = 0
        for element in elements:
            try:
                fragment = self.builder.build_from_element(page, element, PROFILE_CARD)
            except Exception as e:
                logger.debug(f" Skipping product element: {e}")
                continue
            if fragment is not None:
                fragments.append(fragment)
                built += 1

        logger.info(f" Extracted {built} fragment(s) from {len(elements)} product element(s)")
        return fragments

    def find_product_elements(self, page: PageSnapshot, product_selector: Optional[str] = None) -> List[Tag]:
        """
        Product container elements on a listing page

        Uses the selector override when given, else the first platform
        selector with matches, else the closest containers of product links.
        """
        if product_selector:
            return page.soup.select(product_selector)

        site_type = detect_site_type(page)
        for selector in PRODUCT_CONTAINER_SELECTORS.get(site_type, PRODUCT_CONTAINER_SELECTORS[GENERIC]):
            elements = page.soup.select(selector)
            if elements:
                logger.debug(f" Found {len(elements)} product element(s) with {selector}")
                return elements

        return self._containers_of_product_links(page)

    def _containers_of_product_links(self, page: PageSnapshot) -> List[Tag]:
        """Largest ancestor of each product link that holds no other product"""
        containers: List[Tag] = []
        for link in page.soup.select(PRODUCT_LINK_SELECTOR):
            container = link
            for _ in range(MAX_CONTAINER_DEPTH):
                parent = container.parent
                if not isinstance(parent, Tag) or parent.name in ('body', 'html'):
                    break
                hrefs = {a.get('href') for a in parent.select(PRODUCT_LINK_SELECTOR)}
                if len(hrefs) > 1:
                    break
                container = parent
            if not any(container is seen for seen in containers):
                containers.append(container)
        if containers:
            logger.debug(f" Found {len(containers)} product link container(s)")
        return containers


# Convenience function for simple usage
def scrape(url: str, options: Optional[ScrapeOptions] = None, **kwargs) -> List[CanonicalProduct]:
    """
    Convenience function for simple scraping

    Args:
        url: Target URL
        options: Per-invocation options
        **kwargs: ScraperSettings fields

    Returns:
        Canonical products
    """
    settings = ScraperSettings(**kwargs) if kwargs else None
    return ProductScraper(settings=settings).scrape_sync(url, options)
