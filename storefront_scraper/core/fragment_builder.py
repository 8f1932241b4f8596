"""
Fragment Builder
Turns one DOM element or one structured JSON record into a ProductFragment
"""

import re
import logging
from typing import Any, Dict, List, Optional, Tuple

from bs4 import Tag

from .field_extractors import (
    clean_html,
    clean_text,
    extract_attribute,
    extract_options,
    extract_text,
    first_match,
    is_placeholder_name,
    make_absolute_url,
    own_attribute,
    parse_cents,
    parse_price,
    select_attribute,
    tag_attribute,
)
from .models import ProductFragment, ProductVariant
from .page_snapshot import PageSnapshot
from .structured_data import KIND_PRODUCT

logger = logging.getLogger(__name__)

PROFILE_CARD = 'card'
PROFILE_DETAIL = 'detail'

GENERIC_PAGE_TITLES = {'page', 'home', 'accueil'}
FALLBACK_NAME = 'Product'

COLOR_OPTION_NAMES = ('color', 'colour', 'couleur')
SIZE_OPTION_NAMES = ('size', 'taille')

# Image sources that are never product photos
IMAGE_NOISE = ('placeholder', 'blank.', 'spacer', 'loading')

SKU_LABEL_PATTERN = re.compile(r'^(SKU|Ref|Réf)\s*[:.]?\s*', re.IGNORECASE)

# Product photos on a detail page; the rest of the document is site chrome
DETAIL_GALLERY_IMAGES = (
    '[class*="product-gallery"] img, [class*="thumbnail"] img, '
    '[class*="product-image"] img, .woocommerce-product-gallery__image img'
)

# Prices kept in attributes when the element shows none
PRICE_ATTRIBUTE_STRATEGIES = [
    own_attribute('data-price'),
    own_attribute('data-product-price'),
    select_attribute('[data-price]', 'data-price'),
    select_attribute('[data-product-price]', 'data-product-price'),
    select_attribute('[itemprop="price"]', 'content'),
]

# WooCommerce variation selects, labelled by their table row
VARIATION_SELECTOR = '.variations select'

SELECTOR_PROFILES: Dict[str, Dict[str, List[str]]] = {
    PROFILE_CARD: {
        'name': [
            '.product-name', '.product-title', 'h1', 'h2', 'h3', '.title', '[itemprop="name"]',
            '.product-item-name', '.woocommerce-loop-product__title', '.product_title',
            '.product-single__title', '.product-info__title', '.card-title',
        ],
        'price': [
            '.price', '[itemprop="price"]', '.product-price', '.regular-price',
            '.current-price', '.amount', '.product__price', '.price-item', '[data-price]',
        ],
        'image': [
            '.product-image', '.product-img', '[itemprop="image"]', '.card-img',
            '.product-photo', '.product-thumbnail', '.woocommerce-product-gallery__image',
        ],
        'link': [
            '.product-link', '.product-url', '[itemprop="url"]', '.card-link',
            'a[href*="/products/"]', 'a[href*="/product"]',
        ],
        'description': [
            '.description', '.product-description', '[itemprop="description"]',
            '.product-short-description', '.card-text', '.product-excerpt',
        ],
        'sku': ['[itemprop="sku"]', '.sku', '.product-sku', '.product-meta-sku'],
        'brand': ['[itemprop="brand"]', '.brand', '.manufacturer', '.product-brand', '.vendor'],
        'category': ['.product-category', '[itemprop="category"]', '.category'],
        'sizes': [
            '.size-options', '.product-size', '.swatch-size', 'select[name*="size"]',
            '[data-option-name*="size" i]', '[data-option-name*="taille" i]',
        ],
        'colors': [
            '.color-options', '.product-color', '.swatch-color', 'select[name*="color"]',
            '[data-option-name*="color" i]', '[data-option-name*="couleur" i]',
        ],
    },
    PROFILE_DETAIL: {
        'name': [
            'h1.product-title', 'h1.product-name', 'h1.product_title', 'h1.product__title',
            'h1.product-single__title', 'h1[itemprop="name"]', 'h1.title', 'h1',
            '.product-title', '.product-name',
        ],
        'price': [
            '.product__price', '.price__current', '.product-single__price', '[itemprop="price"]',
            '.product-price', '.price-value', '.current-price', '[data-product-price]',
            '[class*="product-price"]', '.price ins .woocommerce-Price-amount', '.woocommerce-Price-amount',
            '.price',
        ],
        'image': [
            '[itemprop="image"]', '.product-featured-img', '.product-single__media',
            '.product-image', '.product-img', '.product__image', '.main-image',
            '[data-zoom-image]', '[class*="product-image"]', '.woocommerce-product-gallery__image',
        ],
        'link': [],
        'description': [
            '[itemprop="description"]', '.product-single__description', '.product-description',
            '.product__description', '#description', '[class*="product-description"]',
            '.woocommerce-product-details__short-description', '#tab-description', '.description',
        ],
        'sku': ['[itemprop="sku"]', '.sku', '[data-product-sku]', '[class*="product-sku"]'],
        'brand': [
            '[itemprop="brand"]', '.brand', '.vendor', '[data-product-vendor]',
            '[class*="brand"]', '[class*="vendor"]',
        ],
        'category': [
            '.breadcrumb', '[itemprop="breadcrumb"]', '.posted_in a', '.woocommerce-breadcrumb',
            '.product-category', '[data-category]',
        ],
        'sizes': [
            'select[name*="size"]', '[data-option-name*="size" i]', '[data-option-name*="taille" i]',
            '.size-options', '.swatch-size', '[class*="size-swatch"]',
        ],
        'colors': [
            'select[name*="color"]', '[data-option-name*="color" i]', '[data-option-name*="couleur" i]',
            '.color-options', '.swatch-color', '[class*="color-swatch"]',
        ],
    },
}


class FragmentBuilder:
    """
    Assembles one ProductFragment per product element or JSON record
    """

    def build_from_element(
        self,
        page: PageSnapshot,
        element: Tag,
        profile: str = PROFILE_CARD
    ) -> Optional[ProductFragment]:
        """
        Build a fragment from a DOM element

        Args:
            page: Page handle
            element: Product container (a card, or the document body for a detail page)
            profile: 'card' for listing elements, 'detail' for single-product pages

        Returns:
            ProductFragment, or None if no name could be resolved
        """
        selectors = SELECTOR_PROFILES[profile]
        own_text_fallback = profile == PROFILE_CARD

        name = extract_text(page, element, selectors['name'], fallback_to_own_text=own_text_fallback)
        if not name:
            logger.debug("Skipping element without a resolvable name")
            return None

        description = clean_html(extract_text(page, element, selectors['description'], fallback_to_own_text=False))
        brand = extract_text(page, element, selectors['brand'], fallback_to_own_text=False)

        if is_placeholder_name(name):
            name = self.recover_name(page, name, description, brand)

        price = parse_price(extract_text(page, element, selectors['price'], fallback_to_own_text=False))
        if not price:
            price = parse_price(first_match(PRICE_ATTRIBUTE_STRATEGIES, page, element, default=''))

        image_url = make_absolute_url(self._image_source(page, element, selectors['image'], profile), page.url)
        image_urls = self._collect_images(page, element, image_url, profile)
        image_url = image_url or (image_urls[0] if image_urls else '')

        if profile == PROFILE_DETAIL:
            product_url = page.url
        else:
            href = extract_attribute(page, element, 'a', 'href', selectors['link'])
            product_url = make_absolute_url(href, page.url)

        sku = extract_text(page, element, selectors['sku'], fallback_to_own_text=False)
        sku = SKU_LABEL_PATTERN.sub('', sku)
        category = self._clean_category(extract_text(page, element, selectors['category'], fallback_to_own_text=False))
        variation_colors, variation_sizes = self._variation_options(element)
        sizes = extract_options(page, element, selectors['sizes']) or variation_sizes
        colors = extract_options(page, element, selectors['colors']) or variation_colors

        external_id = None
        if profile == PROFILE_CARD:
            external_id = element.get('data-product-id') or element.get('data-id')

        fragment = ProductFragment(
            external_id=external_id or None,
            name=name,
            price=price,
            description=description or None,
            image_url=image_url or None,
            image_urls=image_urls or None,
            product_url=product_url or None,
            sku=sku or None,
            brand=brand or None,
            category=category or None,
            colors=colors or None,
            sizes=sizes or None,
        )

        # Listing cards are the lowest-fidelity source: revisit their detail page
        if profile == PROFILE_CARD and fragment.product_url and not (fragment.description and fragment.sizes):
            fragment.needs_enrichment = True

        return fragment

    def build_from_record(self, page: PageSnapshot, record: Dict[str, Any]) -> Optional[ProductFragment]:
        """
        Build a fragment from a structured-data record

        Args:
            page: Page handle
            record: {'_source', '_kind', 'vendor', 'data'} from StructuredDataExtractor

        Returns:
            ProductFragment, or None if the record has no name
        """
        data = record.get('data') or {}
        variants_data = [v for v in (data.get('variants') or []) if isinstance(v, dict)]

        name = clean_text(data.get('title') or data.get('name') or '')
        if not name and variants_data:
            # Analytics variants carry "Title - Option" names
            name = clean_text(str(variants_data[0].get('name') or '').split(' - ')[0])
        if not name:
            return None

        description = clean_html(data.get('description') or data.get('body_html') or '')
        brand = data.get('vendor') or record.get('vendor') or None

        if is_placeholder_name(name):
            name = self.recover_name(page, name, description, brand)

        price = parse_cents(data.get('price'))
        if not price and variants_data:
            price = parse_cents(variants_data[0].get('price'))

        images = self._record_images(data, page.url)
        featured = data.get('featured_image') or data.get('image')
        if isinstance(featured, dict):
            featured = featured.get('src') or featured.get('url')
        image_url = make_absolute_url(featured, page.url) if isinstance(featured, str) else ''
        if image_url and image_url not in images:
            images.insert(0, image_url)
        image_url = image_url or (images[0] if images else '')

        if record.get('_kind') == KIND_PRODUCT:
            product_url = page.url
        elif data.get('handle') and page.origin:
            product_url = f"{page.origin}/products/{data['handle']}"
        else:
            product_url = make_absolute_url(data.get('url') or '', page.url)

        product_id = str(data['id']) if data.get('id') is not None else None
        colors, sizes, option_slots = self._split_options(data.get('options'), variants_data)
        variants = [self._variant(v, option_slots, price) for v in variants_data if v.get('id') is not None]

        stock = None
        if 'available' in data:
            stock = 0 if data.get('available') is False else 1

        return ProductFragment(
            external_id=product_id,
            name=name,
            price=price,
            description=description or None,
            image_url=image_url or None,
            image_urls=images or None,
            product_url=product_url or None,
            sku=data.get('sku') or product_id,
            brand=brand,
            category=data.get('type') or data.get('product_type') or None,
            colors=colors or None,
            sizes=sizes or None,
            variants=variants or None,
            stock=stock,
        )

    def recover_name(self, page: PageSnapshot, name: str, description: str, brand: Optional[str]) -> str:
        """
        Replace a camera/file-name style product name

        Order: first sentence of the description, the page title unless it is
        a generic placeholder, a name built from the brand, then 'Product'.
        """
        if description:
            first_sentence = description.split('.')[0].strip()
            if len(first_sentence) > 3 and not is_placeholder_name(first_sentence):
                logger.debug(f"Recovered name for {name!r} from description")
                return first_sentence

        title = clean_text(page.title)
        if title and title.lower() not in GENERIC_PAGE_TITLES and not is_placeholder_name(title):
            logger.debug(f"Recovered name for {name!r} from page title")
            return title

        if brand:
            return f"{FALLBACK_NAME} {brand}"
        return FALLBACK_NAME

    # ------------------------------------------------------------------

    def _image_source(self, page: PageSnapshot, element: Tag, selectors: List[str], profile: str) -> str:
        strategies = []
        for attribute in ('src', 'data-src', 'data-zoom-image'):
            strategies.extend(select_attribute(selector, attribute, 'img') for selector in selectors)
        # Bare first-image fallback only inside a card
        if profile == PROFILE_CARD:
            for attribute in ('src', 'data-src', 'data-lazy-src'):
                strategies.append(tag_attribute('img', attribute))
        source = first_match(strategies, page, element, default='')
        if source and self._is_noise_image(source):
            return ''
        return source

    def _collect_images(self, page: PageSnapshot, element: Tag, primary: str, profile: str) -> List[str]:
        urls = [primary] if primary else []
        if profile == PROFILE_DETAIL:
            images = element.select(DETAIL_GALLERY_IMAGES)
        else:
            images = element.find_all('img')
        for img in images:
            source = img.get('src') or img.get('data-src') or img.get('data-lazy-src')
            if not source:
                srcset = img.get('srcset') or img.get('data-srcset') or ''
                candidates = [part.strip().split(' ')[0] for part in srcset.split(',') if part.strip()]
                source = candidates[-1] if candidates else ''
            if not source or self._is_noise_image(source):
                continue
            absolute = make_absolute_url(source, page.url)
            if absolute and absolute not in urls:
                urls.append(absolute)
        return urls

    @staticmethod
    def _is_noise_image(source: str) -> bool:
        lowered = source.lower()
        return lowered.startswith('data:') or any(marker in lowered for marker in IMAGE_NOISE)

    @staticmethod
    def _clean_category(text: str) -> str:
        if not text:
            return ''
        text = re.sub(r'^\s*(Accueil|Home)\s*[>/›»]\s*', '', text, flags=re.IGNORECASE)
        return re.sub(r'\s*[>/›»]\s*$', '', text).strip()

    @staticmethod
    def _variation_options(element: Tag) -> Tuple[List[str], List[str]]:
        """
        Colors and sizes from a variations table

        Each select is classified by its row label, else by its id.

        Returns:
            (colors, sizes)
        """
        colors: List[str] = []
        sizes: List[str] = []
        for control in element.select(VARIATION_SELECTOR):
            row = control.find_parent('tr')
            label = row.find('label') if row is not None else None
            option_name = f"{label.get_text() if label is not None else ''} {control.get('id') or ''}".lower()

            if any(marker in option_name for marker in COLOR_OPTION_NAMES):
                target = colors
            elif any(marker in option_name for marker in SIZE_OPTION_NAMES):
                target = sizes
            else:
                continue

            for option in control.find_all('option'):
                # value="" marks the "choose an option" prompt
                if option.get('value') == '':
                    continue
                value = clean_text(option.get_text()) or (option.get('value') or '').strip()
                if value and value not in target:
                    target.append(value)
        return colors, sizes

    @staticmethod
    def _record_images(data: Dict[str, Any], base_url: str) -> List[str]:
        images = []
        for image in data.get('images') or []:
            if isinstance(image, dict):
                image = image.get('src') or image.get('original') or image.get('url') or ''
            if isinstance(image, str):
                absolute = make_absolute_url(image, base_url)
                if absolute and absolute not in images:
                    images.append(absolute)
        return images

    @staticmethod
    def _split_options(
        options: Any,
        variants: List[Dict[str, Any]]
    ) -> Tuple[List[str], List[str], Dict[str, int]]:
        """
        Split platform options into colors and sizes

        Options are either {'name', 'values'} objects or bare option names,
        in which case the values come from the variants' option1..option3.

        Returns:
            (colors, sizes, {'color'|'size': option position})
        """
        colors: List[str] = []
        sizes: List[str] = []
        slots: Dict[str, int] = {}

        for position, option in enumerate(options or [], start=1):
            if isinstance(option, dict):
                option_name = str(option.get('name') or '').lower()
                values = [str(v) for v in option.get('values') or []]
            else:
                option_name = str(option).lower()
                values = [str(v.get(f'option{position}')) for v in variants if v.get(f'option{position}')]

            if any(marker in option_name for marker in COLOR_OPTION_NAMES):
                target, slot = colors, 'color'
            elif any(marker in option_name for marker in SIZE_OPTION_NAMES):
                target, slot = sizes, 'size'
            else:
                continue
            slots.setdefault(slot, position)
            for value in values:
                if value and value != 'Default Title' and value not in target:
                    target.append(value)

        return colors, sizes, slots

    @staticmethod
    def _variant(data: Dict[str, Any], slots: Dict[str, int], fallback_price: float) -> ProductVariant:
        color_slot = slots.get('color', 1)
        size_slot = slots.get('size', 2)
        stock = None
        if 'available' in data:
            stock = 0 if data.get('available') is False else 1
        return ProductVariant(
            id=str(data['id']),
            sku=data.get('sku') or None,
            color=data.get(f'option{color_slot}') or None,
            size=data.get(f'option{size_slot}') or None,
            price=parse_cents(data.get('price')) or fallback_price or None,
            stock=stock,
        )
