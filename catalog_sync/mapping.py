import hashlib
import logging
from typing import Union

logger = logging.getLogger(__name__)

# Ordered (source key, target) pairs. A target is either a model attribute
# name or a nested map applied to the remote value when it is an object.
FieldMap = list[tuple[str, Union[str, 'FieldMap']]]

PRODUCT_MAP: FieldMap = [
    ('id', 'remote_id'),
    ('title', 'title'),
    ('handle', 'handle'),
    ('body_html', 'content'),
    ('vendor', 'vendor'),
    ('product_type', 'product_type'),
    ('tags', 'tags'),
    ('created_at', 'remote_created_at'),
    ('updated_at', 'remote_updated_at'),
]

VARIANT_MAP: FieldMap = [
    ('id', 'remote_id'),
    ('title', 'title'),
    ('price', 'price'),
    ('compare_at_price', 'compare_at_price'),
    ('sku', 'sku'),
    ('position', 'position'),
    ('option1', 'option1'),
    ('option2', 'option2'),
    ('option3', 'option3'),
    ('taxable', 'taxable'),
    ('barcode', 'barcode'),
    ('inventory_quantity', 'inventory_quantity'),
    ('grams', 'grams'),
    ('weight', 'weight'),
    ('weight_unit', 'weight_unit'),
    ('inventory_item_id', 'inventory_item_id'),
    ('requires_shipping', 'requires_shipping'),
    ('created_at', 'remote_created_at'),
    ('updated_at', 'remote_updated_at'),
]

IMAGE_MAP: FieldMap = [
    ('id', 'remote_id'),
    ('alt', 'title'),
    ('position', 'position'),
    ('src', 'src'),
    ('created_at', 'remote_created_at'),
    ('updated_at', 'remote_updated_at'),
]

COLLECTION_MAP: FieldMap = [
    ('id', 'remote_id'),
    ('handle', 'handle'),
    ('title', 'title'),
    ('body_html', 'content'),
    ('created_at', 'remote_created_at'),
    ('updated_at', 'remote_updated_at'),
]

MEMBERSHIP_MAP: FieldMap = [
    ('id', 'remote_id'),
    ('sort_value', 'sort_value'),
    ('position', 'position'),
    ('featured', 'featured'),
]


def apply_map(field_map: FieldMap, target, data: dict) -> None:
    """
    Copy every declared key of ``data`` onto ``target`` following ``field_map``.

    A key missing from ``data`` is skipped; a key present with a null value
    is copied. Nested maps are followed only when the remote value is an
    object. No coercion happens here: the model rejects bad values later.
    """
    for source, dest in field_map:
        if source not in data:
            continue
        value = data[source]
        if isinstance(dest, str):
            setattr(target, dest, value)
        elif isinstance(value, dict):
            apply_map(dest, target, value)


def mapped_fields(field_map: FieldMap) -> list[str]:
    """Flatten a map into the target attribute names it can write."""
    fields = []
    for _, dest in field_map:
        if isinstance(dest, str):
            fields.append(dest)
        else:
            fields.extend(mapped_fields(dest))
    return fields


def synthesize_image_id(src: str) -> str:
    """Stable identity for an image the remote gives no id (collection images)."""
    return 'src-' + hashlib.sha1(src.encode('utf-8')).hexdigest()
