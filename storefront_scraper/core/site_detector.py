"""
Site Detector
Identifies the storefront platform and whether a page shows a single product
"""

import logging

from .page_snapshot import PageSnapshot, ANALYTICS_META, PLATFORM_PRESENT

logger = logging.getLogger(__name__)

SHOPIFY = 'shopify'
WOOCOMMERCE = 'woocommerce'
GENERIC = 'generic'

SHOPIFY_HOST_MARKERS = ('myshopify.com', 'shopify.com')

# Score needed for the DOM heuristic to call a page a product page
PRODUCT_PAGE_SCORE = 3


def detect_site_type(page: PageSnapshot) -> str:
    """
    Detect the e-commerce platform of a loaded page

    Returns:
        'shopify', 'woocommerce' or 'generic'
    """
    host = page.hostname.lower()
    if any(marker in host for marker in SHOPIFY_HOST_MARKERS):
        return SHOPIFY

    if page.globals.get(PLATFORM_PRESENT) or page.globals.get(ANALYTICS_META):
        return SHOPIFY

    soup = page.soup
    if soup.select_one('script[src*="shopify"], link[href*="shopify"]') is not None:
        return SHOPIFY

    body = soup.body
    body_classes = body.get('class', []) if body is not None else []
    if (
        soup.select_one('.woocommerce, script[src*="woocommerce"]') is not None
        or 'woocommerce' in body_classes
        or 'woocommerce-page' in body_classes
    ):
        return WOOCOMMERCE

    return GENERIC


def product_page_score(page: PageSnapshot) -> int:
    """
    Heuristic score for "this page shows one product"

    add-to-cart control: 2, fewer than 3 h1/h2: 1,
    product images/gallery: 1, variant controls: 1
    """
    soup = page.soup
    score = 0
    if soup.select_one('button[name*="add"], button[id*="add-to-cart"], [class*="add-to-cart"]') is not None:
        score += 2
    if len(soup.select('h1, h2')) < 3:
        score += 1
    if soup.select_one('.product-image, [class*="product-gallery"], [class*="product-image"]') is not None:
        score += 1
    if soup.select_one('select[name*="option"], [class*="variant"], [class*="swatch"]') is not None:
        score += 1
    return score


def is_product_page(page: PageSnapshot) -> bool:
    """True when the page is a single-product detail page"""
    if '/products/' in page.path or '/product/' in page.path:
        return True
    body = page.soup.body
    if body is not None and 'single-product' in body.get('class', []):
        return True
    score = product_page_score(page)
    logger.debug(f"Product page score for {page.url}: {score}")
    return score >= PRODUCT_PAGE_SCORE
