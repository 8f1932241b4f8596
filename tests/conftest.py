"""Shared pages and fakes for the storefront scraper tests"""

import pytest

from storefront_scraper.core.exceptions import NavigationError
from storefront_scraper.core.page_snapshot import PageSnapshot

SHOP = 'https://shop.example.com'
LISTING_URL = f'{SHOP}/collections/all'

LISTING_HTML = """
<html>
<head><title>Spring Arrivals | Acme</title></head>
<body>
<h1>Spring Arrivals</h1>
<div class="collection">
  <div class="product-card">
    <a class="product-link" href="/products/linen-shirt"><img src="/cdn/linen-shirt.jpg"></a>
    <h3 class="product-title">Linen Shirt</h3>
    <span class="price">€ 49,90</span>
    <p class="product-description">A breathable linen shirt for warm summer days.</p>
    <select name="size">
      <option>Choose</option>
      <option>S</option>
      <option>M</option>
      <option>L</option>
    </select>
    <span class="sku">SKU: LS-01</span>
    <span class="vendor">Acme</span>
    <span class="product-category">Shirts</span>
  </div>
  <div class="product-card">
    <a class="product-link" href="/products/wool-scarf"><img src="/cdn/wool-scarf.jpg"></a>
    <h3 class="product-title">Wool Scarf</h3>
    <span class="price">€ 35,00</span>
  </div>
  <div class="product-card">
    <a class="product-link" href="/products/img-4021"><img src="/cdn/IMG_4021.jpg"></a>
    <h3 class="product-title">IMG_4021</h3>
    <span class="price">€ 19,00</span>
  </div>
</div>
</body>
</html>
"""

WOOL_SCARF_URL = f'{SHOP}/products/wool-scarf'

WOOL_SCARF_HTML = """
<html>
<head><title>Wool Scarf | Acme</title></head>
<body>
<nav class="breadcrumb">Home > Accessories</nav>
<img class="product__image" src="/cdn/wool-scarf-large.jpg">
<h1 class="product-title">Wool Scarf</h1>
<div class="product__price">€ 35,00</div>
<div class="product-description"><p>Soft merino wool scarf, knitted in Scotland.</p></div>
<select name="size">
  <option>Choose</option>
  <option>Standard</option>
  <option>Long</option>
</select>
<span class="sku">WS-22</span>
<span class="vendor">Acme</span>
</body>
</html>
"""


HOODIE_URL = f'{SHOP}/boutique/hoodie/'

HOODIE_HTML = """
<html>
<head><title>Hoodie – Acme</title></head>
<body class="product-template-default single-product woocommerce woocommerce-page">
<header><img class="custom-logo" src="/wp-content/uploads/logo.png"></header>
<nav class="woocommerce-breadcrumb"><a href="/">Home</a> / <a href="/c/clothing/">Clothing</a> / Hoodie</nav>
<div class="woocommerce-product-gallery">
  <div class="woocommerce-product-gallery__image">
    <a href="/wp-content/uploads/hoodie-front.jpg"><img src="/wp-content/uploads/hoodie-front-600.jpg"></a>
  </div>
  <div class="woocommerce-product-gallery__image">
    <a href="/wp-content/uploads/hoodie-back.jpg"><img src="/wp-content/uploads/hoodie-back-600.jpg"></a>
  </div>
</div>
<div class="summary entry-summary">
  <h1 class="product_title entry-title">Hoodie</h1>
  <p class="price">
    <del><span class="woocommerce-Price-amount amount"><bdi>60,00&nbsp;<span class="woocommerce-Price-currencySymbol">€</span></bdi></span></del>
    <ins><span class="woocommerce-Price-amount amount"><bdi>45,00&nbsp;<span class="woocommerce-Price-currencySymbol">€</span></bdi></span></ins>
  </p>
  <div class="woocommerce-product-details__short-description"><p>Brushed fleece hoodie with a kangaroo pocket.</p></div>
  <form class="variations_form cart">
    <table class="variations"><tbody>
      <tr>
        <th class="label"><label for="pa_couleur">Couleur</label></th>
        <td class="value"><select id="pa_couleur" name="attribute_pa_couleur">
          <option value="">Choisir une option</option>
          <option value="gris">Gris</option>
          <option value="noir">Noir</option>
        </select></td>
      </tr>
      <tr>
        <th class="label"><label for="pa_taille">Taille</label></th>
        <td class="value"><select id="pa_taille" name="attribute_pa_taille">
          <option value="">Choisir une option</option>
          <option value="s">S</option>
          <option value="m">M</option>
        </select></td>
      </tr>
    </tbody></table>
  </form>
  <div class="product_meta">
    <span class="sku_wrapper">UGS : <span class="sku">HD-01</span></span>
    <span class="posted_in">Catégorie : <a href="/c/hoodies/">Hoodies</a></span>
  </div>
</div>
<footer><img src="/wp-content/uploads/visa.svg"></footer>
</body>
</html>
"""


class FakeDriver:
    """Serves canned HTML by URL; unknown URLs fail like an unreachable page"""

    def __init__(self, pages):
        self.pages = dict(pages)
        self.current_url = None
        self.loaded = []
        self.scrolled = 0

    async def load(self, url, wait_for_selector=None):
        self.loaded.append(url)
        if url not in self.pages:
            raise NavigationError(url, status=404)
        self.current_url = url
        return url

    async def dismiss_cookie_banner(self):
        return False

    async def stimulate_lazy_load(self, step=800, pause=0.5, max_iterations=30):
        self.scrolled += 1
        return 1

    async def snapshot(self):
        return PageSnapshot.from_html(self.current_url, self.pages[self.current_url])


@pytest.fixture
def listing_page():
    return PageSnapshot.from_html(LISTING_URL, LISTING_HTML)


@pytest.fixture
def wool_scarf_page():
    return PageSnapshot.from_html(WOOL_SCARF_URL, WOOL_SCARF_HTML)


@pytest.fixture
def fake_driver():
    return FakeDriver({
        LISTING_URL: LISTING_HTML,
        WOOL_SCARF_URL: WOOL_SCARF_HTML,
    })


@pytest.fixture
def hoodie_page():
    return PageSnapshot.from_html(HOODIE_URL, HOODIE_HTML)
