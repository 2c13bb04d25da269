from types import SimpleNamespace

from catalog_sync.mapping import (
    PRODUCT_MAP,
    apply_map,
    mapped_fields,
    synthesize_image_id,
)


# ---------------------------------------------------------------------------
# apply_map
# ---------------------------------------------------------------------------

class TestApplyMap:
    def test_copies_declared_fields(self):
        target = SimpleNamespace()
        apply_map([('id', 'remote_id'), ('title', 'title')], target, {'id': 7, 'title': 'Mill'})
        assert target.remote_id == 7
        assert target.title == 'Mill'

    def test_absent_field_is_skipped_not_nulled(self):
        target = SimpleNamespace(title='Old title', vendor='Acme')
        apply_map([('title', 'title'), ('vendor', 'vendor')], target, {'title': 'New title'})
        assert target.title == 'New title'
        assert target.vendor == 'Acme'

    def test_explicit_null_is_copied(self):
        target = SimpleNamespace(vendor='Acme')
        apply_map([('vendor', 'vendor')], target, {'vendor': None})
        assert target.vendor is None

    def test_nested_map_followed_for_objects(self):
        target = SimpleNamespace()
        field_map = [('id', 'remote_id'), ('seo', [('title', 'seo_title'), ('description', 'seo_text')])]
        apply_map(field_map, target, {'id': 1, 'seo': {'title': 'Buy now', 'description': 'Cheap'}})
        assert target.seo_title == 'Buy now'
        assert target.seo_text == 'Cheap'

    def test_nested_map_skipped_for_non_objects(self):
        target = SimpleNamespace(seo_title='kept')
        apply_map([('seo', [('title', 'seo_title')])], target, {'seo': None})
        assert target.seo_title == 'kept'
        assert not hasattr(target, 'seo')

    def test_no_coercion(self):
        target = SimpleNamespace()
        apply_map([('price', 'price')], target, {'price': '19.99'})
        assert target.price == '19.99'

    def test_unmapped_remote_fields_ignored(self):
        target = SimpleNamespace()
        apply_map([('id', 'remote_id')], target, {'id': 1, 'admin_graphql_api_id': 'gid://x'})
        assert vars(target) == {'remote_id': 1}


# ---------------------------------------------------------------------------
# mapped_fields
# ---------------------------------------------------------------------------

class TestMappedFields:
    def test_flattens_nested_maps(self):
        field_map = [('id', 'remote_id'), ('seo', [('title', 'seo_title')])]
        assert mapped_fields(field_map) == ['remote_id', 'seo_title']

    def test_product_map_targets_model_fields(self):
        assert 'remote_id' in mapped_fields(PRODUCT_MAP)
        assert 'content' in mapped_fields(PRODUCT_MAP)


# ---------------------------------------------------------------------------
# synthesize_image_id
# ---------------------------------------------------------------------------

class TestSynthesizeImageId:
    def test_stable_for_same_src(self):
        src = 'https://cdn.shopify.com/s/files/collections/coffee.jpg?v=1'
        assert synthesize_image_id(src) == synthesize_image_id(src)

    def test_differs_for_different_src(self):
        assert synthesize_image_id('https://a/x.jpg') != synthesize_image_id('https://a/y.jpg')

    def test_fits_remote_id_column(self):
        assert len(synthesize_image_id('https://a/x.jpg' * 100)) <= 64
