"""
Product Quality Score Calculator
Scores canonical products on eight equally weighted field checks
"""
import math
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import DEFAULT_COMPLETE_THRESHOLD
from .models import ProductFragment

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MIN_DESCRIPTION_LENGTH = 20


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (12.5 -> 13)"""
    return int(math.floor(value + 0.5))


class QualityCalculator:
    """
    Calculates quality scores for products

    Supports:
    - Per-product score from eight equal checks
    - Completeness against a threshold
    - Field coverage across a result list
    """

    # (field label, check) in reporting order
    CHECKS: List[Tuple[str, Callable[[ProductFragment], bool]]] = [
        ('name', lambda p: len((p.name or '').strip()) > MIN_NAME_LENGTH),
        ('price', lambda p: bool(p.price) and p.price > 0),
        ('description', lambda p: len((p.description or '').strip()) > MIN_DESCRIPTION_LENGTH),
        ('imageUrl', lambda p: bool(p.image_url)),
        ('sizes', lambda p: bool(p.sizes)),
        ('category', lambda p: bool(p.category)),
        ('sku', lambda p: bool(p.sku)),
        ('brand', lambda p: bool(p.brand)),
    ]

    # Fields reported by calculate_field_coverage
    COVERAGE_FIELDS = [
        'name', 'price', 'description', 'imageUrl', 'productUrl',
        'sku', 'brand', 'category', 'colors', 'sizes', 'variants',
    ]

    def __init__(self, threshold: int = DEFAULT_COMPLETE_THRESHOLD):
        """
        Initialize quality calculator

        Args:
            threshold: Score at or above which a product is complete
        """
        if not 0 <= threshold <= 100:
            raise ValueError(f"threshold must be between 0 and 100, got {threshold}")
        self.threshold = threshold

    def score(self, product: ProductFragment) -> int:
        """
        Quality score 0-100: share of passed checks, rounded half-up

        Returns:
            Integer score
        """
        passed = sum(1 for _, check in self.CHECKS if check(product))
        return round_half_up(100 * passed / len(self.CHECKS))

    def missing_fields(self, product: ProductFragment) -> List[str]:
        """Labels of the checks a product fails"""
        return [label for label, check in self.CHECKS if not check(product)]

    @staticmethod
    def lacks_detail(product: ProductFragment) -> bool:
        """True when description or sizes are still missing"""
        return not product.description or not product.sizes

    def refresh(self, product: ProductFragment, threshold: Optional[int] = None) -> ProductFragment:
        """
        Recompute quality_score and is_complete in place

        The enrichment flag is cleared once the product is complete or no
        longer lacks description and sizes.

        Returns:
            The same product
        """
        threshold = self.threshold if threshold is None else threshold
        product.quality_score = self.score(product)
        product.is_complete = product.quality_score >= threshold
        if product.needs_enrichment and (product.is_complete or not self.lacks_detail(product)):
            product.needs_enrichment = False
        logger.debug(f"   Quality {product.quality_score} for {product.name!r}")
        return product

    def calculate_field_coverage(
        self,
        items: List[Dict[str, Any]],
        requested_fields: Optional[List[str]] = None
    ) -> Dict[str, int]:
        """
        Calculate field coverage (how many items have each field)

        Args:
            items: Serialized products (to_dict output)
            requested_fields: Field keys to report (defaults to COVERAGE_FIELDS)

        Returns:
            Dict mapping field name to count of items that have it
        """
        requested_fields = requested_fields or self.COVERAGE_FIELDS
        coverage = {field: 0 for field in requested_fields}

        for item in items:
            for field in requested_fields:
                if self._is_valid_value(item.get(field)):
                    coverage[field] += 1

        return coverage

    def _is_valid_value(self, value: Any) -> bool:
        """Check if value is valid (not None, empty, zero price or just whitespace)"""
        if value is None:
            return False
        if isinstance(value, bool):
            return True
        if isinstance(value, (int, float)):
            return value > 0
        if isinstance(value, str):
            return value.strip() not in ['', 'null', 'None', 'N/A', 'n/a']
        if isinstance(value, (list, tuple)):
            return len(value) > 0
        return True
