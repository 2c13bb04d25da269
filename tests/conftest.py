import pytest

BASE_URL = 'https://fake-shop.myshopify.com/admin/api/2024-01'
ACCESS_TOKEN = 'shpat-secret-token'


@pytest.fixture(autouse=True)
def override_settings(settings, tmp_path):
    settings.SHOPIFY_API_BASE_URL = BASE_URL
    settings.SHOPIFY_ACCESS_TOKEN = ACCESS_TOKEN
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    settings.CATALOG_SYNC_PAGE_SIZE = 250
    settings.CATALOG_SYNC_USE_PRODUCT_LISTINGS = True


class FakeShopifyClient:
    """In-memory remote store honouring since_id/limit the way the API does."""

    def __init__(self, collections=(), products=(), collects=(), listing_ids=()):
        self.data = {
            'collections': list(collections),
            'products': list(products),
            'collects': list(collects),
        }
        self.listing_ids = list(listing_ids)
        self.calls = []

    def _page(self, resource, since_id, limit, ids=None):
        self.calls.append((resource, since_id))
        items = [item for item in self.data[resource] if int(item['id']) > int(since_id)]
        if ids:
            wanted = {str(i) for i in ids}
            items = [item for item in items if str(item['id']) in wanted]
        return sorted(items, key=lambda item: int(item['id']))[:limit]

    def collections(self, since_id=0, limit=250):
        return self._page('collections', since_id, limit)

    def products(self, since_id=0, limit=250, ids=None):
        return self._page('products', since_id, limit, ids)

    def collects(self, since_id=0, limit=250):
        return self._page('collects', since_id, limit)

    def product_listing_ids(self, limit=250):
        self.calls.append(('product_listing_ids', None))
        return list(self.listing_ids)


class FakeFetcher:
    def __init__(self):
        self.calls = []

    def fetch(self, image, folder):
        self.calls.append((image.src, str(folder)))


@pytest.fixture()
def fetcher():
    return FakeFetcher()


def make_image(image_id, product_id=None, src=None, position=1):
    return {
        'id': image_id,
        'product_id': product_id,
        'position': position,
        'alt': None,
        'src': src or f'https://cdn.shopify.com/s/files/products/{image_id}.jpg?v=1',
        'created_at': '2024-01-01T10:00:00+01:00',
        'updated_at': '2024-01-02T10:00:00+01:00',
    }


def make_variant(variant_id, product_id, price='19.99', image_id=None, **extra):
    variant = {
        'id': variant_id,
        'product_id': product_id,
        'title': f'Variant {variant_id}',
        'price': price,
        'compare_at_price': None,
        'sku': f'SKU-{variant_id}',
        'position': 1,
        'option1': 'Default Title',
        'option2': None,
        'option3': None,
        'taxable': True,
        'barcode': None,
        'inventory_quantity': 5,
        'grams': 500,
        'weight': 0.5,
        'weight_unit': 'kg',
        'inventory_item_id': 9000 + variant_id,
        'requires_shipping': True,
        'image_id': image_id,
    }
    variant.update(extra)
    return variant


def make_product(product_id, title='Espresso machine', images=None, variants=None, featured=None, **extra):
    images = images if images is not None else [make_image(product_id * 10, product_id)]
    variants = variants if variants is not None else [make_variant(product_id * 100, product_id)]
    product = {
        'id': product_id,
        'title': title,
        'handle': (title or '').lower().replace(' ', '-'),
        'body_html': '<p>Great</p>',
        'vendor': 'Acme',
        'product_type': 'Coffee',
        'tags': 'coffee, machines',
        'created_at': '2024-01-01T10:00:00+01:00',
        'updated_at': '2024-01-02T10:00:00+01:00',
        'images': images,
        'variants': variants,
        'image': featured if featured is not None else (images[0] if images else None),
    }
    product.update(extra)
    return product


def make_collection(collection_id, title='Coffee', image_src=None):
    collection = {
        'id': collection_id,
        'handle': title.lower(),
        'title': title,
        'body_html': '<p>All things coffee</p>',
        'created_at': '2024-01-01T10:00:00+01:00',
        'updated_at': '2024-01-02T10:00:00+01:00',
    }
    if image_src:
        collection['image'] = {'src': image_src, 'alt': None, 'created_at': '2024-01-01T10:00:00+01:00'}
    return collection


def make_collect(collect_id, collection_id, product_id, position=1):
    return {
        'id': collect_id,
        'collection_id': collection_id,
        'product_id': product_id,
        'position': position,
        'sort_value': f'{position:010d}',
        'featured': False,
    }
