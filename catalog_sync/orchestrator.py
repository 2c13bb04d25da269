import logging
from collections import Counter, defaultdict
from typing import Callable, Iterator, Optional

from django.conf import settings

from . import reconciler
from .assets import AssetFetcher
from .exceptions import RecordValidationError
from .log import SUCCESS
from .mapping import (
    COLLECTION_MAP,
    IMAGE_MAP,
    MEMBERSHIP_MAP,
    PRODUCT_MAP,
    VARIANT_MAP,
    synthesize_image_id,
)
from .models import Collection, CollectionMembership, Image, Product
from .publishing import PublishGate
from .shopify_client import MAX_PAGE_SIZE, ShopifyClient
from .signals import product_imported

logger = logging.getLogger(__name__)

# Structural surprises in a single remote record (wrong nesting, wrong container type).
MALFORMED_RECORD_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


class CatalogSync:
    """
    One full reconciliation pass: collections, then products, then collects.

    A TransportError raised by the client propagates and ends the pass.
    Problems with a single remote record are logged and the pass moves on.
    """

    def __init__(
        self,
        client: ShopifyClient,
        fetcher: Optional[AssetFetcher] = None,
        gate: Optional[PublishGate] = None,
        page_size: Optional[int] = None,
        use_product_listings: Optional[bool] = None,
    ):
        self.client = client
        self.fetcher = fetcher or AssetFetcher()
        self.gate = gate or PublishGate()
        self.page_size = min(page_size or settings.CATALOG_SYNC_PAGE_SIZE, MAX_PAGE_SIZE)
        if use_product_listings is None:
            use_product_listings = settings.CATALOG_SYNC_USE_PRODUCT_LISTINGS
        self.use_product_listings = use_product_listings
        self.stats = Counter()
        # Child remote ids seen per product during this pass.
        self._kept_images = defaultdict(set)
        self._kept_variants = defaultdict(set)

    def run(self, generation: int) -> dict:
        self.import_collections()
        ids = self.client.product_listing_ids(limit=self.page_size) if self.use_product_listings else []
        self.import_products(ids)
        self.import_collects(generation)
        return dict(self.stats)

    # -- pagination ---------------------------------------------------------

    def pages(self, fetch: Callable[..., list], label: str, **kwargs) -> Iterator[list[dict]]:
        """
        Yield pages from ``fetch`` until it returns an empty one.

        The cursor is the largest id of the previous page. A page that
        does not move the cursor forward ends the loop as well.
        """
        since_id = 0
        while True:
            page = fetch(since_id=since_id, limit=self.page_size, **kwargs)
            if not page:
                return
            yield page

            next_id = self._max_id(page)
            if next_id is None or next_id <= since_id:
                logger.warning("[%s] Cursor for %s did not advance, stopping pagination", since_id, label)
                return
            since_id = next_id
            logger.info("[%s] Importing next page of %s since last id", since_id, label)

    @staticmethod
    def _max_id(page: list[dict]) -> Optional[int]:
        ids = []
        for item in page:
            try:
                ids.append(int(item['id']))
            except (KeyError, TypeError, ValueError):
                continue
        return max(ids) if ids else None

    # -- collections ----------------------------------------------------------

    def import_collections(self) -> None:
        for page in self.pages(self.client.collections, 'collections'):
            for record in page:
                self._isolated('collection', record, self.import_collection)

    def import_collection(self, record: dict) -> Collection:
        result = reconciler.reconcile(reconciler.COLLECTION, COLLECTION_MAP, record)
        collection = result.entity
        self._count('collections', result)

        changed = result.changed
        if 'image' in record:
            changed = self._attach_collection_image(collection, record['image']) or changed

        if changed:
            logger.log(SUCCESS, "[%s] Saved changes in collection %s", collection.pk, collection.title)
        else:
            logger.log(SUCCESS, "[%s] Collection %s has no changes", collection.pk, collection.title)
        self.gate.ensure_published(collection, 'collection')
        return collection

    def _attach_collection_image(self, collection: Collection, image_record) -> bool:
        """
        Point the collection at the image in ``image_record``.

        The image it pointed at before is deleted once no collection uses it.
        Returns whether the collection was saved.
        """
        image_id = None
        if isinstance(image_record, dict) and image_record.get('src'):
            image_record = dict(image_record)
            # Collection images have no id of their own; key them by source so
            # the same payload is not imported twice.
            if image_record.get('id') is None:
                image_record['id'] = synthesize_image_id(image_record['src'])
            try:
                image = self._import_image(image_record, folder='collection')
            except RecordValidationError as exc:
                self.stats['errors'] += 1
                logger.error("%s", exc)
                return False
            image_id = image.pk

        previous_id = collection.image_id
        if previous_id == image_id:
            return False
        collection.image_id = image_id
        reconciler.COLLECTION.save(collection)

        if previous_id is not None and not Collection.objects.filter(image_id=previous_id).exists():
            previous = Image.objects.filter(pk=previous_id, product__isnull=True).first()
            if previous is not None:
                remote_id = previous.remote_id
                self._delete_image(previous)
                logger.log(SUCCESS, "[%s][%s] Deleted image no longer on collection", collection.remote_id, remote_id)
        return True

    # -- products -------------------------------------------------------------

    def import_products(self, ids=None) -> None:
        seen = set()
        for page in self.pages(self.client.products, 'products', ids=ids or None):
            for record in page:
                if record.get('id') is not None:
                    seen.add(str(record['id']))
                self._isolated('product', record, self.import_product)
        self.delete_orphan_products(seen)

    def import_product(self, record: dict) -> Product:
        result = reconciler.reconcile(reconciler.PRODUCT, PRODUCT_MAP, record)
        product = result.entity
        self._count('products', result)

        if 'images' in record:
            self._import_product_images(product, record['images'] or [])
        if 'variants' in record:
            self._import_variants(product, record['variants'] or [])

        changed = result.changed
        if 'image' in record:
            changed = self._attach_featured_image(product, record['image']) or changed

        if changed:
            logger.log(SUCCESS, "[%s] Saved changes in product %s", product.pk, product.title)
        else:
            logger.log(SUCCESS, "[%s] Product %s has no changes", product.pk, product.title)

        self.gate.ensure_published(product, 'product')
        product_imported.send(sender=Product, product=product, record=record)
        return product

    def _import_product_images(self, product: Product, records: list[dict]) -> None:
        kept = self._kept_images[product.pk]
        for record in records:
            if record.get('id') is not None:
                kept.add(str(record['id']))
            try:
                self._import_image(record, folder=product.remote_id, relations={'product_id': product.pk})
            except RecordValidationError as exc:
                self.stats['errors'] += 1
                logger.error("%s", exc)

        for image in product.images.exclude(remote_id__in=kept):
            remote_id = image.remote_id
            self._delete_image(image)
            logger.log(SUCCESS, "[%s][%s] Deleted image no longer on product", product.remote_id, remote_id)

    def _import_image(self, record: dict, folder, relations: Optional[dict] = None) -> Image:
        def fetch_changed_source(image, changed_fields):
            if 'src' in changed_fields:
                self.fetcher.fetch(image, folder)

        result = reconciler.reconcile(
            reconciler.IMAGE, IMAGE_MAP, record, relations=relations, before_save=fetch_changed_source,
        )
        self._count('images', result)
        self.gate.ensure_published(result.entity, 'image')
        return result.entity

    def _import_variants(self, product: Product, records: list[dict]) -> None:
        kept = self._kept_variants[product.pk]
        for record in records:
            if record.get('id') is not None:
                kept.add(str(record['id']))
            relations = {'product_id': product.pk}
            if 'image_id' in record:
                relations['image_id'] = self._image_pk(record['image_id'])
            try:
                result = reconciler.reconcile(reconciler.VARIANT, VARIANT_MAP, record, relations=relations)
            except RecordValidationError as exc:
                self.stats['errors'] += 1
                logger.error("%s", exc)
                continue
            self._count('variants', result)
            if result.changed:
                logger.log(SUCCESS, "[%s] Saved variant %s of %s", result.entity.pk, result.entity.title, product.title)
            self.gate.ensure_published(result.entity, 'variant')

        for variant in product.variants.exclude(remote_id__in=kept):
            variant_pk, remote_id = variant.pk, variant.remote_id
            self._delete_variant(variant)
            logger.log(SUCCESS, "[%s][%s] Deleted old variant connected to product", variant_pk, remote_id)

    def _attach_featured_image(self, product: Product, image_record) -> bool:
        image_pk = None
        if isinstance(image_record, dict) and image_record.get('id') is not None:
            image_pk = self._image_pk(image_record['id'])
        if product.featured_image_id == image_pk:
            return False
        product.featured_image_id = image_pk
        reconciler.PRODUCT.save(product)
        return True

    @staticmethod
    def _image_pk(remote_id) -> Optional[int]:
        if remote_id is None:
            return None
        return Image.objects.filter(remote_id=str(remote_id)).values_list('pk', flat=True).first()

    def delete_orphan_products(self, seen: set) -> None:
        """Delete every local product whose remote id was not in the full listing."""
        current = set(Product.objects.values_list('remote_id', flat=True))
        for remote_id in sorted(current - seen):
            product = Product.objects.filter(remote_id=remote_id).first()
            if product is not None:
                self.delete_product(product)

    def delete_product(self, product: Product) -> None:
        remote_id = product.remote_id
        for image in product.images.all():
            image_id = image.remote_id
            self._delete_image(image)
            logger.log(SUCCESS, "[%s][%s] Deleted image connected to product", remote_id, image_id)

        for variant in product.variants.all():
            variant_id = variant.remote_id
            self._delete_variant(variant)
            logger.log(SUCCESS, "[%s][%s] Deleted variant connected to product", remote_id, variant_id)

        self.gate.unpublish(product)
        product.delete()
        self.stats['products_deleted'] += 1
        logger.log(SUCCESS, "[%s] Deleted product and its connections", remote_id)

    def _delete_image(self, image: Image) -> None:
        self.gate.unpublish(image)
        if image.file:
            image.file.delete(save=False)
        image.delete()
        self.stats['images_deleted'] += 1

    def _delete_variant(self, variant) -> None:
        self.gate.unpublish(variant)
        variant.delete()
        self.stats['variants_deleted'] += 1

    # -- collects -------------------------------------------------------------

    def import_collects(self, generation: int) -> None:
        """
        Upsert memberships and stamp them with ``generation``.

        Rows with an older generation after the full listing went through
        were not seen remotely and are removed.
        """
        for page in self.pages(self.client.collects, 'collects'):
            for record in page:
                self._isolated('collect', record, self.import_collect, generation)

        deleted, _ = CollectionMembership.objects.filter(generation__lt=generation).delete()
        self.stats['collects_deleted'] += deleted
        if deleted:
            logger.log(SUCCESS, "[%s] Deleted %d collects not seen in this pass", generation, deleted)

    def import_collect(self, record: dict, generation: int) -> Optional[CollectionMembership]:
        collection_pk = self._pk_for(Collection, record.get('collection_id'))
        product_pk = self._pk_for(Product, record.get('product_id'))
        if collection_pk is None or product_pk is None:
            self.stats['collects_skipped'] += 1
            logger.debug(
                "[%s] Skipping collect, collection %s or product %s not imported",
                record.get('id'), record.get('collection_id'), record.get('product_id'),
            )
            return None

        result = reconciler.reconcile(
            reconciler.MEMBERSHIP,
            MEMBERSHIP_MAP,
            record,
            relations={'collection_id': collection_pk, 'product_id': product_pk},
        )
        membership = result.entity
        CollectionMembership.objects.filter(pk=membership.pk).update(generation=generation)
        membership.generation = generation
        self._count('collects', result)
        if result.created:
            logger.log(
                SUCCESS, "[%s] Created collect between Product[%s] and Collection[%s]",
                membership.remote_id, product_pk, collection_pk,
            )
        return membership

    @staticmethod
    def _pk_for(model, remote_id) -> Optional[int]:
        if remote_id is None:
            return None
        return model.objects.filter(remote_id=str(remote_id)).values_list('pk', flat=True).first()

    # -- bookkeeping ----------------------------------------------------------

    def _isolated(self, label: str, record: dict, handler: Callable, *args) -> None:
        try:
            handler(record, *args)
        except RecordValidationError as exc:
            self.stats['errors'] += 1
            logger.error("%s", exc)
        except MALFORMED_RECORD_ERRORS as exc:
            self.stats['errors'] += 1
            remote_id = record.get('id') if isinstance(record, dict) else None
            logger.error("[%s] Could not import %s: malformed record (%s)", remote_id, label, exc)

    def _count(self, label: str, result: reconciler.Reconciled) -> None:
        if result.created:
            self.stats[f'{label}_created'] += 1
        elif result.changed:
            self.stats[f'{label}_updated'] += 1
        else:
            self.stats[f'{label}_unchanged'] += 1
