import re

import pytest

from storefront_scraper.core.models import CanonicalProduct, ProductFragment, ProductVariant
from storefront_scraper.core.reconciler import (
    ProductReconciler,
    generate_external_id,
    merge_products,
    name_similarity,
    names_match,
    prefer_longer,
    prefer_non_empty,
    union_deduplicated,
)

BASE = 'https://www.shop.example.com/collections/all'


@pytest.fixture
def reconciler():
    return ProductReconciler()


def test_combinators():
    assert prefer_non_empty(None, 'b') == 'b'
    assert prefer_non_empty('', 'b') == 'b'
    assert prefer_non_empty('a', 'b') == 'a'
    assert prefer_non_empty([], ['S']) == ['S']
    assert prefer_longer('short', 'much longer text') == 'much longer text'
    assert prefer_longer('same', 'tied') == 'same'
    assert prefer_longer(None, 'b') == 'b'
    assert union_deduplicated(['a', 'b'], ['b', 'c']) == ['a', 'b', 'c']
    assert union_deduplicated(None, []) is None


def test_merge_is_commutative_on_non_conflicting_fields():
    a = ProductFragment(name='Linen Shirt', price=49.9, brand='Acme', sizes=['S', 'M'])
    b = ProductFragment(
        name='Linen Shirt',
        external_id='101',
        description='A breathable linen shirt.',
        image_url='https://shop.example.com/cdn/linen.jpg',
        category='Shirts',
        variants=[ProductVariant(id='1', size='S')],
        stock=3,
    )

    assert merge_products(a, b).to_dict() == merge_products(b, a).to_dict()


def test_merge_keeps_known_values():
    canonical = CanonicalProduct(external_id='x', name='Wool Scarf', price=35.0, brand='Acme', sku='WS-22')
    recovered = ProductFragment(name='Wool Scarf', price=0.0, description='Soft merino wool scarf.')

    merged = merge_products(canonical, recovered)

    assert merged.brand == 'Acme'
    assert merged.sku == 'WS-22'
    assert merged.price == 35.0
    assert merged.description == 'Soft merino wool scarf.'
    assert merged.external_id == 'x'


def test_merge_field_preferences():
    a = ProductFragment(name='IMG_4021', price=0.0, description='Short.', needs_enrichment=True,
                        variants=[ProductVariant(id='1')])
    b = ProductFragment(name='Canvas Tote', price=25.0, description='A longer description of the tote.',
                        variants=[ProductVariant(id='1'), ProductVariant(id='2')])

    merged = merge_products(a, b)

    assert merged.name == 'Canvas Tote'
    assert merged.price == 25.0
    assert merged.description == 'A longer description of the tote.'
    assert merged.variants == [ProductVariant(id='1'), ProductVariant(id='2')]
    assert merged.needs_enrichment
    assert type(merged) is ProductFragment


def test_name_similarity():
    assert name_similarity('Red Cotton Shirt Large', 'Red Cotton Shirt Small') == 0.75
    assert name_similarity('Summer Dress', 'Winter Coat') == 0.0
    assert name_similarity('', 'Winter Coat') == 0.0


def test_names_match():
    assert names_match('Summer Dress Blue', 'summer dress blue')
    assert names_match('Summer Dress Blue', 'Summer Dress Blue - Size M')
    assert names_match('Red Cotton Shirt Large', 'Red Cotton Shirt Small')
    assert not names_match('Summer Dress', 'Winter Coat')
    assert not names_match('Linen Shirt', 'Linen Trousers Wide')


def test_similar_names_merge(reconciler):
    fragments = [
        ProductFragment(name='Summer Dress Blue', price=59.0),
        ProductFragment(name='Summer Dress Blue - Size M', price=59.0, sizes=['M']),
    ]

    products = reconciler.reconcile(fragments, base_url=BASE)

    assert len(products) == 1
    assert products[0].name == 'Summer Dress Blue'
    assert products[0].sizes == ['M']


def test_different_names_do_not_merge(reconciler):
    fragments = [
        ProductFragment(name='Summer Dress', price=59.0),
        ProductFragment(name='Winter Coat', price=129.0),
    ]

    assert len(reconciler.reconcile(fragments, base_url=BASE)) == 2


def test_match_by_external_id_and_product_url(reconciler):
    fragments = [
        ProductFragment(name='Canvas Tote', price=25.0, external_id='555'),
        ProductFragment(name='Tote bag (canvas)', price=25.0, external_id='555', brand='Acme',
                        product_url='https://shop.example.com/products/canvas-tote'),
        ProductFragment(name='The natural tote', price=25.0,
                        product_url='https://shop.example.com/products/canvas-tote', category='Bags'),
    ]

    products = reconciler.reconcile(fragments, base_url=BASE)

    assert len(products) == 1
    assert products[0].external_id == '555'
    assert products[0].brand == 'Acme'
    assert products[0].category == 'Bags'


def test_price_less_fragments_only_fill_gaps(reconciler):
    fragments = [
        ProductFragment(name='Canvas Tote', price=25.0, external_id='555'),
        ProductFragment(name='Canvas Tote', price=0.0, description='Heavy canvas tote bag.', brand='Acme'),
        ProductFragment(name='Canvas Tote', price=0.0, sku='IGNORED'),
        ProductFragment(name='Gift Card', price=0.0, description='Not a product on its own.'),
    ]

    products = reconciler.reconcile(fragments, base_url=BASE)

    assert len(products) == 1
    assert products[0].description == 'Heavy canvas tote bag.'
    assert products[0].brand == 'Acme'
    assert products[0].sku is None


def test_empty_names_are_dropped(reconciler):
    assert reconciler.reconcile([ProductFragment(name='', price=10.0)], base_url=BASE) == []


def test_synthetic_ids_are_deterministic(reconciler):
    fragment = ProductFragment(name='Linen Shirt', price=49.9,
                               product_url='https://shop.example.com/products/linen-shirt')

    first = reconciler.reconcile([fragment], base_url=BASE)[0].external_id
    second = reconciler.reconcile([fragment], base_url=BASE)[0].external_id

    assert first == second == generate_external_id(fragment, BASE)
    assert re.fullmatch(r'shop\.example\.com-linen-shirt-[0-9a-f]{6}', first)


def test_synthetic_id_collisions_get_a_suffix(reconciler):
    image = 'https://shop.example.com/cdn/shirt.jpg'
    fragments = [
        ProductFragment(name='Linen Shirt!', price=49.9, image_url=image),
        ProductFragment(name='linen-shirt', price=39.9, image_url=image),
    ]

    ids = [p.external_id for p in reconciler.reconcile(fragments, base_url=BASE)]

    assert len(ids) == 2
    assert ids[1] == f'{ids[0]}-2'


def test_fragments_merge_into_seeds(reconciler):
    seed = CanonicalProduct(external_id='acme-wool-scarf', name='Wool Scarf', price=35.0, brand='Acme',
                            product_url='https://shop.example.com/products/wool-scarf')
    detail = ProductFragment(name='Merino Scarf', price=35.0, description='Soft merino wool scarf.',
                             product_url='https://shop.example.com/products/wool-scarf')

    products = reconciler.reconcile([detail], base_url=BASE, seeds=[seed])

    assert len(products) == 1
    assert products[0].external_id == 'acme-wool-scarf'
    assert products[0].name == 'Wool Scarf'
    assert products[0].brand == 'Acme'
    assert products[0].description == 'Soft merino wool scarf.'
