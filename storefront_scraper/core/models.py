"""
Product data model
Fragments are raw per-location observations, canonical products are merged records
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ProductVariant:
    """One purchasable combination of options"""
    id: str
    sku: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    price: Optional[float] = None
    stock: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductVariant':
        return cls(
            id=str(data.get('id', '')),
            sku=data.get('sku'),
            color=data.get('color'),
            size=data.get('size'),
            price=data.get('price'),
            stock=data.get('stock'),
        )


# Python attribute -> output key
_FIELD_KEYS = {
    'external_id': 'externalId',
    'name': 'name',
    'price': 'price',
    'description': 'description',
    'image_url': 'imageUrl',
    'image_urls': 'imageUrls',
    'product_url': 'productUrl',
    'sku': 'sku',
    'brand': 'brand',
    'category': 'category',
    'colors': 'colors',
    'sizes': 'sizes',
    'variants': 'variants',
    'stock': 'stock',
    'needs_enrichment': 'needsEnrichment',
    'quality_score': 'qualityScore',
    'is_complete': 'isComplete',
}

# Always serialized, even when falsy
_REQUIRED_KEYS = {'external_id', 'name', 'price', 'quality_score', 'is_complete'}


@dataclass
class ProductFragment:
    """
    A partial, unverified observation of a product from one location on one page
    """
    name: str
    price: float = 0.0
    external_id: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    image_urls: Optional[List[str]] = None
    product_url: Optional[str] = None
    sku: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    colors: Optional[List[str]] = None
    sizes: Optional[List[str]] = None
    variants: Optional[List[ProductVariant]] = None
    stock: Optional[int] = None
    needs_enrichment: bool = False
    quality_score: int = 0
    is_complete: bool = False

    def __post_init__(self):
        if self.price is None:
            self.price = 0.0
        if self.price < 0:
            raise ValueError(f"Product price cannot be negative: {self.price}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optional fields"""
        result = {}
        for attr, key in _FIELD_KEYS.items():
            value = getattr(self, attr)
            if attr == 'needs_enrichment' and not value:
                continue
            if value is None and attr not in _REQUIRED_KEYS:
                continue
            if attr == 'variants':
                value = [v.to_dict() for v in value]
            result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        kwargs = {}
        for attr, key in _FIELD_KEYS.items():
            if key in data:
                kwargs[attr] = data[key]
        if kwargs.get('variants') is not None:
            kwargs['variants'] = [ProductVariant.from_dict(v) for v in kwargs['variants']]
        kwargs.setdefault('name', '')
        return cls(**kwargs)


@dataclass
class CanonicalProduct(ProductFragment):
    """
    One real product, merged from one or more fragments.
    external_id is always set.
    """

    def __post_init__(self):
        super().__post_init__()
        if not self.external_id:
            raise ValueError("CanonicalProduct requires an external_id")

    @classmethod
    def from_fragment(cls, fragment: ProductFragment, external_id: Optional[str] = None) -> 'CanonicalProduct':
        values = {f.name: getattr(fragment, f.name) for f in fields(fragment)}
        if external_id:
            values['external_id'] = external_id
        for list_field in ('image_urls', 'colors', 'sizes', 'variants'):
            if values[list_field] is not None:
                values[list_field] = list(values[list_field])
        return cls(**values)
