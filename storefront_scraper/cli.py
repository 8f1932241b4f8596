"""
Command Line Interface for Storefront Scraper
"""

import argparse
import json
import logging
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

from .core.config import ScrapeOptions, ScraperSettings, DEFAULT_MAX_PRODUCTS, LOG_FORMAT
from .core.exceptions import ScraperError
from .core.models import CanonicalProduct
from .core.quality_calculator import QualityCalculator
from .core.scraper import ProductScraper

logger = logging.getLogger(__name__)

PREVIEW_COUNT = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Storefront Scraper - extract product data from any e-commerce site'
    )

    # Input
    parser.add_argument(
        'url',
        type=str,
        help='Listing or product page URL'
    )

    # Extraction
    parser.add_argument(
        '--selector',
        type=str,
        help='CSS selector for product containers (overrides detection)'
    )
    parser.add_argument(
        '--max-products',
        type=int,
        default=DEFAULT_MAX_PRODUCTS,
        help=f'Maximum number of products (default: {DEFAULT_MAX_PRODUCTS})'
    )
    parser.add_argument(
        '--no-scroll',
        action='store_true',
        help='Do not scroll the page to trigger lazy loading'
    )
    parser.add_argument(
        '--wait-for',
        type=str,
        help='CSS selector to wait for before extracting'
    )

    # Enrichment and quality
    parser.add_argument(
        '--max-enrich',
        type=int,
        help='Maximum detail pages visited to complete products'
    )
    parser.add_argument(
        '--threshold',
        type=int,
        help='Quality score at which a product is complete'
    )
    parser.add_argument(
        '--min-quality',
        type=int,
        default=0,
        help='Drop products scoring below this (default: 0)'
    )

    # Output
    parser.add_argument(
        '--output-dir',
        type=str,
        help='Directory for the JSON result file'
    )
    parser.add_argument(
        '--no-save',
        action='store_true',
        help='Print results instead of saving them'
    )

    # Browser
    parser.add_argument(
        '--headful',
        action='store_true',
        help='Show the browser window'
    )
    parser.add_argument(
        '--timeout',
        type=int,
        help='Navigation timeout in milliseconds'
    )

    # Other
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    return parser


def build_settings(args: argparse.Namespace) -> ScraperSettings:
    """Environment settings overridden by explicit flags"""
    settings = ScraperSettings.from_env()
    if args.headful:
        settings.headless = False
    if args.timeout is not None:
        settings.browser_timeout = args.timeout
    if args.max_enrich is not None:
        settings.max_enrich = args.max_enrich
    if args.threshold is not None:
        settings.complete_threshold = args.threshold
    if args.output_dir:
        settings.output_dir = args.output_dir
    # Re-run validation on the overridden values
    return ScraperSettings(**vars(settings))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT
    )

    try:
        settings = build_settings(args)
        options = ScrapeOptions(
            product_selector=args.selector,
            max_products=args.max_products,
            scroll_to_load=not args.no_scroll,
            wait_for_selector=args.wait_for,
            min_quality=args.min_quality,
        )
    except ValueError as e:
        parser.error(str(e))

    scraper = ProductScraper(settings=settings, log_level=log_level)
    print(f"🔍 Scraping {args.url}")

    try:
        products = scraper.scrape_sync(args.url, options)
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted by user")
        return 1
    except ScraperError as e:
        logger.error(f" Scrape failed: {e}")
        print(f"\n❌ Error: {e}")
        products = []
    except Exception as e:
        logger.exception(f" Unexpected error while scraping {args.url}")
        print(f"\n❌ Error: {e}")
        products = []

    items = [product.to_dict() for product in products]
    print_summary(items, scraper.scorer)

    if not items:
        return 0

    if args.no_save:
        print(json.dumps(items, indent=2, ensure_ascii=False))
    else:
        save_results(items, settings.output_dir, args.url)
    return 0


def sanitize_hostname(url: str) -> str:
    """Hostname without 'www.' and common TLDs, safe for file names"""
    host = urlparse(url).hostname or 'unknown'
    host = re.sub(r'^www\.', '', host)
    host = re.sub(r'\.(com|net|org|fr)$', '', host)
    return re.sub(r'[^a-zA-Z0-9.-]', '-', host)


def output_filename(url: str, now: Optional[datetime] = None) -> str:
    """
    products-{sanitized-host}-{timestamp}.json

    The timestamp is UTC ISO-8601 with millisecond precision, ':' and '.' replaced by '-'
    """
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime('%Y-%m-%dT%H:%M:%S') + f".{now.microsecond // 1000:03d}Z"
    timestamp = re.sub(r'[:.]', '-', timestamp)
    return f"products-{sanitize_hostname(url)}-{timestamp}.json"


def save_results(items: List[Dict], output_dir: str, url: str) -> Path:
    """Save serialized products to a timestamped JSON file"""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / output_filename(url)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(items, f, indent=2, ensure_ascii=False)
    print(f"💾 Saved to {output_path} (JSON)")
    return output_path


def print_summary(items: List[Dict], scorer: QualityCalculator):
    """Print count, field coverage and a preview of the best products"""
    if not items:
        print("\n❌ No products extracted")
        return

    print(f"\n✅ Scraping complete!")
    print(f"   Products: {len(items)}")
    complete = sum(1 for item in items if item.get('isComplete'))
    print(f"   Complete: {complete}/{len(items)}")

    coverage = scorer.calculate_field_coverage(items)
    print("   Field coverage:")
    for field, count in coverage.items():
        print(f"     {field}: {count}/{len(items)} ({count / len(items):.0%})")

    print("   Preview:")
    for item in items[:PREVIEW_COUNT]:
        product = CanonicalProduct.from_dict(item)
        missing = scorer.missing_fields(product)
        suffix = f" (missing: {', '.join(missing)})" if missing else ''
        print(f"     [{product.quality_score}] {product.name} - {product.price}{suffix}")


if __name__ == '__main__':
    sys.exit(main())
