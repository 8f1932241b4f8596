"""
Structured Data Extractor - platform JSON before DOM
Reads product data exposed by storefront platforms:
  1. The analytics metadata global (ShopifyAnalytics.meta)
  2. <script type="application/json"> blocks used by storefront themes
This path yields the highest-confidence fragments.
"""

import json
import re
import logging
from typing import Any, Dict, List, Optional

from .page_snapshot import PageSnapshot, ANALYTICS_META

logger = logging.getLogger(__name__)

SOURCE_ANALYTICS = 'analytics_meta'
SOURCE_JSON_SCRIPT = 'json_script'

KIND_PRODUCT = 'product'
KIND_LISTING = 'listing'

# Inline analytics bootstrap: "var meta = {...};" next to ShopifyAnalytics
META_ASSIGNMENT_PATTERN = re.compile(r'var\s+meta\s*=\s*\{')


class StructuredDataExtractor:
    """
    Finds recognizable product and product-list shapes in platform JSON
    """

    def extract(self, page: PageSnapshot, is_product_page: bool) -> List[Dict[str, Any]]:
        """
        Extract product records from the first structured source that has any

        Args:
            page: Page handle
            is_product_page: Whether the page shows a single product

        Returns:
            List of records: {'_source', '_kind', 'vendor', 'data'}
        """
        records = self._from_analytics_meta(page, is_product_page)
        if records:
            logger.info(f" Found {len(records)} product record(s) in analytics metadata")
            return records

        records = self._from_json_scripts(page, is_product_page)
        if records:
            logger.info(f" Found {len(records)} product record(s) in JSON scripts")
            return records

        logger.debug("No structured product data found")
        return []

    def _from_analytics_meta(self, page: PageSnapshot, is_product_page: bool) -> List[Dict[str, Any]]:
        meta = page.globals.get(ANALYTICS_META)
        if not isinstance(meta, dict):
            meta = self._scan_inline_meta(page.html)
        if not isinstance(meta, dict):
            return []

        vendor = None
        if isinstance(meta.get('page'), dict):
            vendor = meta['page'].get('vendor')

        product = meta.get('product')
        if is_product_page and isinstance(product, dict):
            return [self._record(SOURCE_ANALYTICS, KIND_PRODUCT, product, vendor)]

        products = meta.get('products')
        if isinstance(products, list) and products:
            return [
                self._record(SOURCE_ANALYTICS, KIND_LISTING, p, vendor)
                for p in products if isinstance(p, dict)
            ]
        return []

    def _from_json_scripts(self, page: PageSnapshot, is_product_page: bool) -> List[Dict[str, Any]]:
        for script in page.soup.find_all('script', attrs={'type': 'application/json'}):
            text = script.string or script.get_text()
            if not text or not text.strip():
                continue
            try:
                data = json.loads(text)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed JSON script block")
                continue
            if not isinstance(data, dict):
                continue

            if is_product_page:
                product = data.get('product')
                if isinstance(product, dict):
                    return [self._record(SOURCE_JSON_SCRIPT, KIND_PRODUCT, product, product.get('vendor'))]
                if self._looks_like_product(data):
                    return [self._record(SOURCE_JSON_SCRIPT, KIND_PRODUCT, data, data.get('vendor'))]

            products = data.get('products')
            if isinstance(products, list) and products:
                records = [
                    self._record(SOURCE_JSON_SCRIPT, KIND_LISTING, p, p.get('vendor'))
                    for p in products if isinstance(p, dict)
                ]
                if records:
                    return records
        return []

    @staticmethod
    def _looks_like_product(data: Dict[str, Any]) -> bool:
        """A bare product object: has a title and a variants list"""
        return bool(data.get('title')) and isinstance(data.get('variants'), list)

    @staticmethod
    def _record(source: str, kind: str, data: Dict[str, Any], vendor: Optional[str]) -> Dict[str, Any]:
        return {
            '_source': source,
            '_kind': kind,
            'vendor': vendor,
            'data': data,
        }

    def _scan_inline_meta(self, html: str) -> Optional[Dict[str, Any]]:
        """
        Recover the analytics metadata object from inline script text
        when it was not read from the live window
        """
        if not html or 'ShopifyAnalytics' not in html:
            return None
        for match in META_ASSIGNMENT_PATTERN.finditer(html):
            block = self._object_literal_at(html, match.end() - 1)
            if not block:
                continue
            try:
                data = json.loads(block)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data
        return None

    @staticmethod
    def _object_literal_at(text: str, start: int) -> Optional[str]:
        """The {...} literal opening at text[start], or None if it never closes"""
        depth = 0
        in_string = False
        escaped = False
        for position in range(start, len(text)):
            char = text[position]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return text[start:position + 1]
        return None
