"""
E-commerce Scraping Example
Extracting products from a storefront collection page and saving them to CSV
"""

import csv
from storefront_scraper import ProductScraper, ScrapeOptions, ScraperSettings


def main():
    scraper = ProductScraper(
        settings=ScraperSettings(max_enrich=3, complete_threshold=70)
    )

    # Collection page of a Shopify demo store
    products = scraper.scrape_sync(
        'https://hydrogen-preview.myshopify.com/collections/all',
        ScrapeOptions(max_products=20, min_quality=25)
    )

    print(f"\n✅ Extracted {len(products)} products")

    # Save to CSV
    fields = ['externalId', 'name', 'price', 'brand', 'category', 'productUrl', 'qualityScore']
    if products:
        csv_file = 'products.csv'
        with open(csv_file, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fields, extrasaction='ignore')
            writer.writeheader()
            writer.writerows(product.to_dict() for product in products)

        print(f"💾 Saved to {csv_file}")

    # Display sample
    print("\n📦 Sample Products:")
    for i, product in enumerate(products[:3], 1):
        print(f"\nProduct {i}:")
        for field, value in product.to_dict().items():
            if value:
                print(f"  {field}: {value[:100] if isinstance(value, str) else value}")


if __name__ == '__main__':
    main()
