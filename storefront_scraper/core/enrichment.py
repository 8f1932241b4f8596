"""
Enrichment Controller
Revisits detail pages of incomplete products and merges what they add
"""

import logging
from typing import Callable, List, Optional

from .config import DEFAULT_COMPLETE_THRESHOLD, DEFAULT_MAX_ENRICH
from .exceptions import ScraperError
from .models import CanonicalProduct, ProductFragment
from .page_snapshot import PageSnapshot
from .quality_calculator import QualityCalculator
from .reconciler import ProductReconciler

logger = logging.getLogger(__name__)

# page -> fragments found on it
FragmentSource = Callable[[PageSnapshot], List[ProductFragment]]


class EnrichmentController:
    """
    Best-effort second pass over flagged products

    Each candidate's detail page is loaded, its fragments are reconciled with
    the candidate as seed, and the candidate's merged record replaces it. A
    failure leaves the candidate as it was.
    """

    def __init__(
        self,
        reconciler: ProductReconciler,
        scorer: QualityCalculator,
        fragment_source: FragmentSource,
        max_candidates: int = DEFAULT_MAX_ENRICH,
        threshold: int = DEFAULT_COMPLETE_THRESHOLD
    ):
        """
        Args:
            reconciler: Merges detail-page fragments into the candidate
            scorer: Recomputes quality after each merge
            fragment_source: Extracts fragments from a loaded detail page
            max_candidates: Maximum detail pages visited per invocation
            threshold: Score at which a product counts as complete
        """
        if max_candidates < 0:
            raise ValueError(f"max_candidates cannot be negative, got {max_candidates}")
        self.reconciler = reconciler
        self.scorer = scorer
        self.fragment_source = fragment_source
        self.max_candidates = max_candidates
        self.threshold = threshold

    def select_candidates(self, products: List[CanonicalProduct]) -> List[CanonicalProduct]:
        """Flagged products with a detail URL, in list order, capped"""
        candidates = [p for p in products if p.needs_enrichment and p.product_url]
        return candidates[:self.max_candidates]

    async def enrich(self, products: List[CanonicalProduct], driver) -> List[CanonicalProduct]:
        """
        Enrich flagged products in place of their originals

        Args:
            products: Scored canonical products
            driver: Started BrowserDriver (or any object with load/snapshot)

        Returns:
            All products, sorted by quality score descending
        """
        candidates = self.select_candidates(products)
        if candidates:
            logger.info(f" Enriching {len(candidates)} product(s) from detail pages...")

        enriched_count = 0
        for candidate in candidates:
            enriched = await self._enrich_one(candidate, driver)
            if enriched is None:
                continue
            position = next(i for i, p in enumerate(products) if p is candidate)
            products[position] = enriched
            enriched_count += 1

        if candidates:
            logger.info(f" Enrichment complete: {enriched_count}/{len(candidates)} product(s) updated")

        return sorted(products, key=lambda p: p.quality_score, reverse=True)

    async def _enrich_one(self, candidate: CanonicalProduct, driver) -> Optional[CanonicalProduct]:
        url = candidate.product_url
        try:
            await driver.load(url)
            page = await driver.snapshot()
            fragments = self.fragment_source(page)
        except ScraperError as e:
            logger.warning(f" Enrichment skipped for {candidate.name!r}: {e}")
            return None
        except Exception as e:
            logger.error(f" Enrichment failed for {candidate.name!r} ({url}): {e}")
            return None

        if not fragments:
            logger.warning(f" No product data found on {url}")
            return None

        # Fragments of the page itself belong to the candidate even after a redirect
        for fragment in fragments:
            if fragment.product_url in (None, page.url):
                fragment.product_url = url
            fragment.needs_enrichment = False

        seed = CanonicalProduct.from_fragment(candidate)
        merged = self.reconciler.reconcile(fragments, base_url=url, seeds=[seed])[0]
        merged.needs_enrichment = candidate.needs_enrichment
        self.scorer.refresh(merged, self.threshold)

        logger.info(f" Enriched {merged.name!r}: quality {candidate.quality_score} -> {merged.quality_score}")
        return merged
