from decimal import Decimal
from unittest.mock import patch

import pytest

from catalog_sync import reconciler
from catalog_sync.exceptions import RecordValidationError
from catalog_sync.mapping import MEMBERSHIP_MAP, PRODUCT_MAP, VARIANT_MAP
from catalog_sync.models import Collection, CollectionMembership, Product, Variant

from conftest import make_collect, make_product, make_variant


def count_saves(kind):
    return patch.object(type(kind), 'save', autospec=True, side_effect=type(kind).save)


# ---------------------------------------------------------------------------
# Create / idempotence
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_new_record_is_created_and_saved():
    result = reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, make_product(1))

    assert result.created is True
    assert result.changed is True
    product = Product.objects.get(remote_id='1')
    assert product.title == 'Espresso machine'
    assert product.vendor == 'Acme'
    assert product.version == 1


@pytest.mark.django_db
def test_second_identical_reconcile_performs_no_write():
    record = make_product(1)
    with count_saves(reconciler.PRODUCT) as save:
        reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, record)
        first = Product.objects.values().get(remote_id='1')
        result = reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, record)

    assert save.call_count == 1
    assert result.created is False
    assert result.changed is False
    assert Product.objects.values().get(remote_id='1') == first


# ---------------------------------------------------------------------------
# Change detection
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_changed_title_is_persisted_once():
    reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, make_product(1, title='A'))

    changed = reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, make_product(1, title='B'))
    assert changed.changed is True
    assert changed.changed_fields == ['title', 'handle']
    assert Product.objects.get(remote_id='1').title == 'B'

    with count_saves(reconciler.PRODUCT) as save:
        again = reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, make_product(1, title='B'))
    assert again.changed is False
    assert save.call_count == 0


@pytest.mark.django_db
def test_string_price_matches_stored_decimal():
    product = Product.objects.create(remote_id='1', title='P')
    Variant.objects.create(remote_id='100', product=product, title='Variant 100', price=Decimal('19.99'))
    record = make_variant(100, 1, price='19.99')

    first = reconciler.reconcile(reconciler.VARIANT, VARIANT_MAP, record, relations={'product_id': product.pk})
    second = reconciler.reconcile(reconciler.VARIANT, VARIANT_MAP, record, relations={'product_id': product.pk})

    assert first.changed is True   # fields beyond price were filled in
    assert second.changed is False


@pytest.mark.django_db
def test_relation_change_counts_as_change():
    p1 = Product.objects.create(remote_id='1', title='One')
    p2 = Product.objects.create(remote_id='2', title='Two')
    record = make_variant(100, 1)
    reconciler.reconcile(reconciler.VARIANT, VARIANT_MAP, record, relations={'product_id': p1.pk})

    moved = reconciler.reconcile(reconciler.VARIANT, VARIANT_MAP, record, relations={'product_id': p2.pk})

    assert moved.changed_fields == ['product_id']
    assert Variant.objects.get(remote_id='100').product_id == p2.pk


@pytest.mark.django_db
def test_absent_field_keeps_stored_value():
    reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, make_product(1))
    record = make_product(1)
    del record['vendor']

    result = reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, record)

    assert result.changed is False
    assert Product.objects.get(remote_id='1').vendor == 'Acme'


# ---------------------------------------------------------------------------
# Validation errors stay scoped to the record
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_invalid_value_raises_record_validation_error():
    with pytest.raises(RecordValidationError, match=r'\[1\] Could not import product'):
        reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, make_product(1, title=None))

    assert not Product.objects.exists()


@pytest.mark.django_db
def test_bad_price_raises_record_validation_error():
    product = Product.objects.create(remote_id='1', title='P')
    with pytest.raises(RecordValidationError):
        reconciler.reconcile(
            reconciler.VARIANT, VARIANT_MAP, make_variant(100, 1, price='cheap'),
            relations={'product_id': product.pk},
        )


@pytest.mark.django_db
def test_record_without_id_is_rejected():
    record = make_product(1)
    del record['id']
    with pytest.raises(RecordValidationError, match='no id'):
        reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, record)


@pytest.mark.django_db
def test_before_save_failure_leaves_entity_unsaved():
    def boom(entity, changed_fields):
        raise RecordValidationError('product', entity.remote_id, 'hook failed')

    with pytest.raises(RecordValidationError, match='hook failed'):
        reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, make_product(1), before_save=boom)

    assert not Product.objects.exists()


@pytest.mark.django_db
def test_before_save_receives_changed_fields():
    seen = []
    reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, make_product(1, title='A'))
    reconciler.reconcile(
        reconciler.PRODUCT, PRODUCT_MAP, make_product(1, title='A', vendor='Other'),
        before_save=lambda entity, fields: seen.append(fields),
    )
    assert seen == [['vendor']]


# ---------------------------------------------------------------------------
# Memberships match by remote id or by their pair
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_membership_matched_by_collection_product_pair():
    collection = Collection.objects.create(remote_id='5', title='Coffee')
    product = Product.objects.create(remote_id='1', title='P')
    existing = CollectionMembership.objects.create(remote_id='old', collection=collection, product=product)

    result = reconciler.reconcile(
        reconciler.MEMBERSHIP, MEMBERSHIP_MAP, make_collect(77, 5, 1, position=3),
        relations={'collection_id': collection.pk, 'product_id': product.pk},
    )

    assert result.created is False
    assert result.entity.pk == existing.pk
    membership = CollectionMembership.objects.get()
    assert membership.remote_id == '77'
    assert membership.position == 3
