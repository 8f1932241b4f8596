"""
Basic Usage Example
Scrape one product page with a reused browser driver
"""

import asyncio
from storefront_scraper import ProductScraper, ScrapeOptions
from storefront_scraper.core import BrowserDriver


async def run(url: str):
    scraper = ProductScraper()

    async with BrowserDriver(scraper.settings) as driver:
        products = await scraper.scrape(url, ScrapeOptions(scroll_to_load=False), driver=driver)

    for product in products:
        print(f"\n📦 {product.name}")
        print(f"   Price: {product.price}")
        print(f"   Quality: {product.quality_score} ({'complete' if product.is_complete else 'incomplete'})")
        print(f"   Sizes: {', '.join(product.sizes or []) or '-'}")
        print(f"   Variants: {len(product.variants or [])}")


def main():
    asyncio.run(run('https://hydrogen-preview.myshopify.com/products/the-full-stack'))


if __name__ == '__main__':
    main()
