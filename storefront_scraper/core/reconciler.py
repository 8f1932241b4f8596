"""
Reconciliation Engine
Groups fragments that describe the same product and merges each group
into one CanonicalProduct.

Matching is greedy and single-pass: each fragment joins the first group it
matches, in fragment order. Output therefore depends on input order.
"""

import re
import hashlib
import logging
from typing import Any, Dict, Iterable, List, Optional, Set
from urllib.parse import urlparse

from .field_extractors import is_empty, is_placeholder_name
from .models import CanonicalProduct, ProductFragment

logger = logging.getLogger(__name__)

# Word-overlap ratio above which two names are the same product
NAME_SIMILARITY_THRESHOLD = 0.7

SLUG_MAX_LENGTH = 40
HASH_LENGTH = 6


# ---------------------------------------------------------------------------
# Merge combinators
# ---------------------------------------------------------------------------

def prefer_non_empty(a: Any, b: Any) -> Any:
    """First non-empty value"""
    return b if is_empty(a) else a


def prefer_longer(a: Optional[str], b: Optional[str]) -> Optional[str]:
    """Longer string, first wins ties"""
    if is_empty(a):
        return b if not is_empty(b) else a
    if is_empty(b):
        return a
    return b if len(b) > len(a) else a


def prefer_nonzero(a: float, b: float) -> float:
    """First positive value, else the second"""
    return a if a and a > 0 else b


def union_deduplicated(a: Optional[List[Any]], b: Optional[List[Any]]) -> Optional[List[Any]]:
    """Order-preserving union of two lists; None when both are empty"""
    merged: List[Any] = []
    for item in list(a or []) + list(b or []):
        if item not in merged:
            merged.append(item)
    return merged or None


def prefer_real_name(a: str, b: str) -> str:
    """Keep the first name unless it is a camera/file name and the other is not"""
    if is_empty(a):
        return b
    if is_placeholder_name(a) and not is_empty(b) and not is_placeholder_name(b):
        return b
    return a


def merge_products(a: ProductFragment, b: ProductFragment) -> ProductFragment:
    """
    Merge two observations of the same product

    The first operand keeps its identity; fields are combined with the
    merge combinators so a merge never discards a known value. The result
    is a CanonicalProduct whenever either side carries an external_id.
    """
    product_type = CanonicalProduct if (a.external_id or b.external_id) else ProductFragment
    merged = product_type(
        external_id=a.external_id or b.external_id,
        name=prefer_real_name(a.name, b.name),
        price=prefer_nonzero(a.price, b.price),
        description=prefer_longer(a.description, b.description),
        image_url=prefer_non_empty(a.image_url, b.image_url),
        image_urls=union_deduplicated(a.image_urls, b.image_urls),
        product_url=prefer_non_empty(a.product_url, b.product_url),
        sku=prefer_non_empty(a.sku, b.sku),
        brand=prefer_non_empty(a.brand, b.brand),
        category=prefer_non_empty(a.category, b.category),
        colors=prefer_non_empty(a.colors, b.colors),
        sizes=prefer_non_empty(a.sizes, b.sizes),
        variants=union_deduplicated(a.variants, b.variants),
        stock=a.stock if a.stock is not None else b.stock,
        needs_enrichment=a.needs_enrichment or b.needs_enrichment,
        quality_score=a.quality_score,
        is_complete=a.is_complete,
    )
    if merged.colors is not None:
        merged.colors = list(merged.colors)
    if merged.sizes is not None:
        merged.sizes = list(merged.sizes)
    return merged


# ---------------------------------------------------------------------------
# Name matching
# ---------------------------------------------------------------------------

def normalize_name(name: Optional[str]) -> str:
    return re.sub(r'\s+', ' ', (name or '').lower()).strip()


def name_similarity(a: str, b: str) -> float:
    """
    Word-overlap similarity: words of a found in b, over the longer word count
    """
    words_a = normalize_name(a).split()
    words_b = normalize_name(b).split()
    if not words_a or not words_b:
        return 0.0
    common = sum(1 for word in words_a if word in words_b)
    return common / max(len(words_a), len(words_b))


def names_match(a: str, b: str) -> bool:
    """Equality, containment, or word-overlap similarity above threshold"""
    norm_a = normalize_name(a)
    norm_b = normalize_name(b)
    if not norm_a or not norm_b:
        return False
    if norm_a == norm_b:
        return True
    if norm_a in norm_b or norm_b in norm_a:
        return True
    return name_similarity(norm_a, norm_b) > NAME_SIMILARITY_THRESHOLD


# ---------------------------------------------------------------------------
# Synthetic IDs
# ---------------------------------------------------------------------------

def slugify(text: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', (text or '').lower()).strip('-')
    return slug[:SLUG_MAX_LENGTH].strip('-') or 'product'


def site_domain(url: str) -> str:
    host = urlparse(url).hostname or ''
    if host.startswith('www.'):
        host = host[4:]
    return host or 'local'


def generate_external_id(fragment: ProductFragment, base_url: str = '') -> str:
    """
    Deterministic ID for a product without a source ID:
    "{domain}-{slugified-name}-{short hash}"

    The hash input is the product URL, else the image URL, else the name.
    """
    disambiguator_source = fragment.product_url or fragment.image_url or fragment.name or ''
    digest = hashlib.md5(disambiguator_source.encode('utf-8')).hexdigest()[:HASH_LENGTH]
    domain = site_domain(base_url or fragment.product_url or '')
    return f"{domain}-{slugify(fragment.name)}-{digest}"


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------

class _Group:
    """One canonical product under construction plus the identities it absorbed"""

    def __init__(self, product: CanonicalProduct, source_ids: Iterable[str] = ()):
        self.product = product
        self.ids: Set[str] = {i for i in source_ids if i}
        self.urls: Set[str] = set()
        self._remember(product)

    def _remember(self, fragment: ProductFragment):
        if fragment.product_url:
            self.urls.add(fragment.product_url)

    def absorb(self, fragment: ProductFragment):
        self.product = merge_products(self.product, fragment)
        if fragment.external_id:
            self.ids.add(fragment.external_id)
        self._remember(fragment)


class ProductReconciler:
    """
    Merges fragments into canonical products
    """

    def reconcile(
        self,
        fragments: List[ProductFragment],
        base_url: str = '',
        seeds: Optional[List[CanonicalProduct]] = None
    ) -> List[CanonicalProduct]:
        """
        Group and merge fragments

        Args:
            fragments: Fragments in priority order (structured sources first)
            base_url: Page URL, used for synthetic IDs
            seeds: Existing canonical products that fragments may merge into

        Returns:
            Canonical products, seeds first, in first-seen order
        """
        groups: List[_Group] = []
        used_ids: Set[str] = set()

        for seed in seeds or []:
            groups.append(_Group(seed, [seed.external_id]))
            used_ids.add(seed.external_id)

        # Source IDs are reserved up front so synthetic IDs never collide with them
        for fragment in fragments:
            if fragment.external_id:
                used_ids.add(fragment.external_id)

        dropped = 0
        for fragment in fragments:
            if is_empty(fragment.name):
                dropped += 1
                continue

            group = self._find_group(groups, fragment)
            is_donor = not fragment.price or fragment.price <= 0

            if group is not None:
                if is_donor and not self._supplies_missing(group.product, fragment):
                    logger.debug(f"Ignoring price-less fragment {fragment.name!r}: nothing new")
                    continue
                group.absorb(fragment)
                continue

            if is_donor:
                dropped += 1
                logger.debug(f"Dropping price-less fragment {fragment.name!r}: no matching product")
                continue

            external_id = fragment.external_id
            if not external_id:
                external_id = self._unique_id(generate_external_id(fragment, base_url), used_ids)
            used_ids.add(external_id)
            groups.append(_Group(CanonicalProduct.from_fragment(fragment, external_id), [fragment.external_id]))

        if dropped:
            logger.debug(f"Dropped {dropped} fragment(s) during reconciliation")
        logger.info(f" Reconciled {len(fragments)} fragment(s) into {len(groups)} product(s)")
        return [group.product for group in groups]

    def _find_group(self, groups: List[_Group], fragment: ProductFragment) -> Optional[_Group]:
        if fragment.external_id:
            for group in groups:
                if fragment.external_id in group.ids:
                    return group

        if fragment.product_url:
            for group in groups:
                if fragment.product_url in group.urls:
                    return group

        for group in groups:
            if names_match(group.product.name, fragment.name):
                return group
        return None

    @staticmethod
    def _supplies_missing(product: ProductFragment, fragment: ProductFragment) -> bool:
        """True when a donor fragment fills a description, image or URL gap"""
        return (
            (is_empty(product.description) and not is_empty(fragment.description))
            or (is_empty(product.image_url) and not is_empty(fragment.image_url))
            or (is_empty(product.product_url) and not is_empty(fragment.product_url))
        )

    @staticmethod
    def _unique_id(candidate: str, used_ids: Set[str]) -> str:
        if candidate not in used_ids:
            return candidate
        ordinal = 2
        while f"{candidate}-{ordinal}" in used_ids:
            ordinal += 1
        return f"{candidate}-{ordinal}"
