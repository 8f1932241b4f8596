import pytest

from conftest import LISTING_URL, WOOL_SCARF_URL

from storefront_scraper.core.fragment_builder import FragmentBuilder, PROFILE_DETAIL
from storefront_scraper.core.models import ProductVariant
from storefront_scraper.core.page_snapshot import PageSnapshot
from storefront_scraper.core.structured_data import KIND_LISTING, KIND_PRODUCT


@pytest.fixture
def builder():
    return FragmentBuilder()


def cards(page):
    return page.soup.select('.product-card')


def record(data, kind=KIND_LISTING, vendor=None):
    return {'_source': 'analytics_meta', '_kind': kind, 'vendor': vendor, 'data': data}


def test_fully_detailed_card(builder, listing_page):
    fragment = builder.build_from_element(listing_page, cards(listing_page)[0])

    assert fragment.name == 'Linen Shirt'
    assert fragment.price == pytest.approx(49.9)
    assert fragment.description == 'A breathable linen shirt for warm summer days.'
    assert fragment.image_url == 'https://shop.example.com/cdn/linen-shirt.jpg'
    assert fragment.image_urls == ['https://shop.example.com/cdn/linen-shirt.jpg']
    assert fragment.product_url == 'https://shop.example.com/products/linen-shirt'
    assert fragment.sizes == ['S', 'M', 'L']
    assert fragment.sku == 'LS-01'
    assert fragment.brand == 'Acme'
    assert fragment.category == 'Shirts'
    assert fragment.colors is None
    assert not fragment.needs_enrichment


def test_card_missing_description_is_flagged(builder, listing_page):
    fragment = builder.build_from_element(listing_page, cards(listing_page)[1])

    assert fragment.name == 'Wool Scarf'
    assert fragment.description is None
    assert fragment.needs_enrichment


def test_camera_name_is_replaced_by_page_title(builder, listing_page):
    fragment = builder.build_from_element(listing_page, cards(listing_page)[2])

    assert fragment.name == 'Spring Arrivals | Acme'
    assert fragment.price == 19.0


def test_camera_name_prefers_description_sentence(builder):
    html = (
        '<div class="product-card"><h3 class="product-title">DSC_0042</h3>'
        '<p class="description">Hand-knitted beanie. Keeps you warm.</p><span class="price">12</span></div>'
    )
    page = PageSnapshot.from_html(LISTING_URL, html)

    fragment = builder.build_from_element(page, cards(page)[0])

    assert fragment.name == 'Hand-knitted beanie'


@pytest.mark.parametrize('title, brand, expected', [
    ('Home', 'Acme', 'Product Acme'),
    ('Accueil', None, 'Product'),
    ('', None, 'Product'),
])
def test_camera_name_fallbacks(builder, title, brand, expected):
    page = PageSnapshot(url=LISTING_URL, html='', title=title)
    assert builder.recover_name(page, 'IMG_1', '', brand) == expected


def test_element_without_name_is_skipped(builder):
    page = PageSnapshot.from_html(LISTING_URL, '<div class="product-card"><img src="/a.jpg"></div>')
    assert builder.build_from_element(page, cards(page)[0]) is None


def test_card_id_label_and_breadcrumb_cleanup(builder):
    html = """
    <div class="product-card" data-product-id="101">
      <h3 class="product-name">Canvas Tote</h3>
      <span class="price">25,00 €</span>
      <span class="product-sku">Ref: CT-9</span>
      <span class="product-category">Accueil > Sacs</span>
      <ul class="color-options"><li>Natural</li><li>Black</li></ul>
      <img src="/cdn/placeholder.png">
      <img data-src="/cdn/tote-1.jpg">
      <img srcset="/cdn/tote-2-small.jpg 300w, /cdn/tote-2.jpg 900w">
    </div>
    """
    page = PageSnapshot.from_html(LISTING_URL, html)

    fragment = builder.build_from_element(page, cards(page)[0])

    assert fragment.external_id == '101'
    assert fragment.sku == 'CT-9'
    assert fragment.category == 'Sacs'
    assert fragment.colors == ['Natural', 'Black']
    assert fragment.image_url == 'https://shop.example.com/cdn/tote-1.jpg'
    assert fragment.image_urls == [
        'https://shop.example.com/cdn/tote-1.jpg',
        'https://shop.example.com/cdn/tote-2.jpg',
    ]
    # No product URL, nothing to revisit
    assert fragment.product_url is None
    assert not fragment.needs_enrichment


def test_detail_page(builder, wool_scarf_page):
    document = wool_scarf_page.soup.body

    fragment = builder.build_from_element(wool_scarf_page, document, PROFILE_DETAIL)

    assert fragment.name == 'Wool Scarf'
    assert fragment.price == 35.0
    assert fragment.description == 'Soft merino wool scarf, knitted in Scotland.'
    assert fragment.sizes == ['Standard', 'Long']
    assert fragment.sku == 'WS-22'
    assert fragment.brand == 'Acme'
    assert fragment.category == 'Accessories'
    assert fragment.image_url == 'https://shop.example.com/cdn/wool-scarf-large.jpg'
    assert fragment.product_url == WOOL_SCARF_URL
    assert not fragment.needs_enrichment


def test_record_with_options_and_variants(builder, listing_page):
    data = {
        'id': 555,
        'title': 'Canvas Tote',
        'handle': 'canvas-tote',
        'price': 2500,
        'vendor': 'Acme',
        'type': 'Bags',
        'body_html': '<p>Heavy <em>canvas</em> tote bag with inner pocket.</p>',
        'featured_image': '//cdn.example.com/tote.jpg',
        'images': ['//cdn.example.com/tote.jpg', '//cdn.example.com/tote-back.jpg'],
        'options': [
            {'name': 'Color', 'values': ['Natural', 'Black']},
            {'name': 'Size', 'values': ['S', 'L']},
        ],
        'variants': [
            {'id': 1, 'price': 2500, 'option1': 'Natural', 'option2': 'S', 'sku': 'CT-N-S', 'available': True},
            {'id': 2, 'price': 2700, 'option1': 'Black', 'option2': 'L', 'available': False},
        ],
    }

    fragment = builder.build_from_record(listing_page, record(data))

    assert fragment.external_id == '555'
    assert fragment.name == 'Canvas Tote'
    assert fragment.price == 25.0
    assert fragment.description == 'Heavy canvas tote bag with inner pocket.'
    assert fragment.image_url == 'https://cdn.example.com/tote.jpg'
    assert fragment.image_urls == ['https://cdn.example.com/tote.jpg', 'https://cdn.example.com/tote-back.jpg']
    assert fragment.product_url == 'https://shop.example.com/products/canvas-tote'
    assert fragment.sku == '555'
    assert fragment.brand == 'Acme'
    assert fragment.category == 'Bags'
    assert fragment.colors == ['Natural', 'Black']
    assert fragment.sizes == ['S', 'L']
    assert fragment.variants == [
        ProductVariant(id='1', sku='CT-N-S', color='Natural', size='S', price=25.0, stock=1),
        ProductVariant(id='2', color='Black', size='L', price=27.0, stock=0),
    ]


def test_record_name_from_variant_and_named_options(builder):
    page = PageSnapshot(url='https://shop.example.com/products/beanie', html='')
    data = {
        'id': 7,
        'options': ['Couleur', 'Taille'],
        'variants': [
            {'id': 70, 'price': 1500, 'name': 'Beanie - Rouge / M', 'option1': 'Rouge', 'option2': 'M'},
            {'id': 71, 'price': 1500, 'name': 'Beanie - Bleu / M', 'option1': 'Bleu', 'option2': 'M'},
        ],
        'available': False,
    }

    fragment = builder.build_from_record(page, record(data, kind=KIND_PRODUCT, vendor='Acme'))

    assert fragment.name == 'Beanie'
    assert fragment.price == 15.0
    assert fragment.product_url == 'https://shop.example.com/products/beanie'
    assert fragment.brand == 'Acme'
    assert fragment.colors == ['Rouge', 'Bleu']
    assert fragment.sizes == ['M']
    assert fragment.stock == 0


def test_record_without_name_is_skipped(builder, listing_page):
    assert builder.build_from_record(listing_page, record({'id': 1, 'price': 100})) is None


def test_detail_page_ignores_site_chrome_images(builder):
    html = """
    <html><body>
    <header><img class="logo" src="/cdn/logo.png"></header>
    <h1>Rain Jacket</h1>
    <div class="product-gallery">
      <img src="/cdn/jacket-front.jpg">
      <img src="/cdn/jacket-side.jpg">
    </div>
    <footer><img src="/cdn/visa.svg"><img src="/cdn/mastercard.svg"></footer>
    </body></html>
    """
    page = PageSnapshot.from_html('https://shop.example.com/products/rain-jacket', html)

    fragment = builder.build_from_element(page, page.soup.body, PROFILE_DETAIL)

    assert fragment.image_url == 'https://shop.example.com/cdn/jacket-front.jpg'
    assert fragment.image_urls == [
        'https://shop.example.com/cdn/jacket-front.jpg',
        'https://shop.example.com/cdn/jacket-side.jpg',
    ]


def test_detail_page_without_product_images(builder):
    html = """
    <html><body>
    <header><img class="logo" src="/cdn/logo.png"></header>
    <h1>Gift Card</h1>
    <footer><img src="/cdn/visa.svg"></footer>
    </body></html>
    """
    page = PageSnapshot.from_html('https://shop.example.com/products/gift-card', html)

    fragment = builder.build_from_element(page, page.soup.body, PROFILE_DETAIL)

    assert fragment.image_url is None
    assert fragment.image_urls is None


@pytest.mark.parametrize('card_html', [
    '<div class="product-card" data-price="19.00"><h3>Basic Tee</h3></div>',
    '<div class="product-card"><h3>Basic Tee</h3><span data-product-price="19,00"></span></div>',
    '<div class="product-card"><h3>Basic Tee</h3><meta itemprop="price" content="19.00"></div>',
])
def test_card_price_from_attributes(builder, card_html):
    page = PageSnapshot.from_html(LISTING_URL, f'<html><body>{card_html}</body></html>')

    fragment = builder.build_from_element(page, cards(page)[0])

    assert fragment.price == 19.0


def test_card_price_text_wins_over_attributes(builder):
    html = '<div class="product-card" data-price="1900"><h3>Cap</h3><span class="price">$12.50</span></div>'
    page = PageSnapshot.from_html(LISTING_URL, f'<html><body>{html}</body></html>')

    assert builder.build_from_element(page, cards(page)[0]).price == 12.5


def test_woocommerce_detail_page(builder, hoodie_page):
    fragment = builder.build_from_element(hoodie_page, hoodie_page.soup.body, PROFILE_DETAIL)

    assert fragment.name == 'Hoodie'
    assert fragment.price == 45.0
    assert fragment.description == 'Brushed fleece hoodie with a kangaroo pocket.'
    assert fragment.category == 'Hoodies'
    assert fragment.sku == 'HD-01'
    assert fragment.colors == ['Gris', 'Noir']
    assert fragment.sizes == ['S', 'M']
    assert fragment.image_url == 'https://shop.example.com/wp-content/uploads/hoodie-front-600.jpg'
    assert fragment.image_urls == [
        'https://shop.example.com/wp-content/uploads/hoodie-front-600.jpg',
        'https://shop.example.com/wp-content/uploads/hoodie-back-600.jpg',
    ]
