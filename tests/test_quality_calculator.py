import pytest

from storefront_scraper.core.models import ProductFragment
from storefront_scraper.core.quality_calculator import QualityCalculator, round_half_up


@pytest.fixture
def calculator():
    return QualityCalculator(threshold=70)


def complete_product(**overrides):
    values = dict(
        name='Linen Shirt',
        price=49.9,
        description='A breathable linen shirt for warm summer days.',
        image_url='https://shop.example.com/cdn/linen.jpg',
        sizes=['S', 'M'],
        category='Shirts',
        sku='LS-01',
        brand='Acme',
    )
    values.update(overrides)
    return ProductFragment(**values)


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(37.5) == 38
    assert round_half_up(62.5) == 63
    assert round_half_up(87.4) == 87


def test_name_price_and_image_score_38(calculator):
    product = ProductFragment(name='Linen Shirt', price=49.9, image_url='https://shop.example.com/cdn/linen.jpg')
    assert calculator.score(product) == 38


def test_all_checks_score_100(calculator):
    assert calculator.score(complete_product()) == 100


def test_check_boundaries(calculator):
    product = ProductFragment(name='Tee', price=0.0, description='x' * 20)
    # Name longer than 2 chars passes; price 0 and a 20-char description fail
    assert calculator.missing_fields(product) == [
        'price', 'description', 'imageUrl', 'sizes', 'category', 'sku', 'brand'
    ]
    assert calculator.score(product) == 13
    assert calculator.score(ProductFragment(name='Ab')) == 0


def test_refresh_sets_completeness(calculator):
    complete = calculator.refresh(complete_product(sku=None, brand=None))
    assert complete.quality_score == 75
    assert complete.is_complete

    incomplete = calculator.refresh(complete_product(sku=None, brand=None, category=None))
    assert incomplete.quality_score == 63
    assert not incomplete.is_complete


def test_refresh_threshold_override(calculator):
    product = calculator.refresh(complete_product(sku=None, brand=None), threshold=80)
    assert not product.is_complete


def test_refresh_clears_enrichment_flag(calculator):
    filled = complete_product(sku=None, brand=None, category=None, image_url=None, needs_enrichment=True)
    assert not calculator.refresh(filled).needs_enrichment

    lacking = ProductFragment(name='Wool Scarf', price=35.0, needs_enrichment=True)
    assert calculator.refresh(lacking).needs_enrichment


def test_field_coverage(calculator):
    items = [
        complete_product().to_dict(),
        ProductFragment(name='Wool Scarf', price=0.0).to_dict(),
    ]

    coverage = calculator.calculate_field_coverage(items, ['name', 'price', 'sizes', 'productUrl'])

    assert coverage == {'name': 2, 'price': 1, 'sizes': 1, 'productUrl': 0}


def test_invalid_threshold():
    with pytest.raises(ValueError):
        QualityCalculator(threshold=101)
