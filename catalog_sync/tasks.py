import logging
import uuid

from celery import shared_task
from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from .exceptions import SyncAlreadyRunning
from .models import SyncRun
from .orchestrator import CatalogSync
from .shopify_client import ShopifyClient

logger = logging.getLogger(__name__)

LOCK_KEY = 'catalog_sync:run-lock'


def run_catalog_sync(client: ShopifyClient = None, **options) -> dict:
    """
    Run one full catalog pass under the single-run lock.

    Every pass is recorded as a SyncRun; its id is the generation stamped on
    the memberships the pass sees. Transport failures propagate after the
    run is marked failed.
    """
    token = uuid.uuid4().hex
    if not cache.add(LOCK_KEY, token, settings.CATALOG_SYNC_LOCK_TIMEOUT):
        raise SyncAlreadyRunning("Another catalog sync is already running.")

    try:
        client = client or ShopifyClient()
        run = SyncRun.objects.create()
        logger.info("[%s] Starting catalog sync", run.pk)
        try:
            stats = CatalogSync(client, **options).run(generation=run.pk)
        except Exception as exc:
            run.status = SyncRun.FAILED
            run.error = str(exc)
            run.finished_at = timezone.now()
            run.save()
            logger.error("[%s] Catalog sync aborted: %s", run.pk, exc)
            raise

        run.status = SyncRun.SUCCEEDED
        run.stats = stats
        run.finished_at = timezone.now()
        run.save()
        logger.info(
            "[%s] Sync complete. errors=%d, products deleted=%d, collects deleted=%d.",
            run.pk, stats.get('errors', 0), stats.get('products_deleted', 0), stats.get('collects_deleted', 0),
        )
        return stats
    finally:
        if cache.get(LOCK_KEY) == token:
            cache.delete(LOCK_KEY)


@shared_task(bind=True, name='catalog_sync.sync_catalog')
def sync_catalog_task(self):
    """
    Periodic reconciliation of the local catalog with the remote store.

    Steps:
      1. Import collections page by page.
      2. Import products (restricted to the app's product listings when
         available) with their images and variants, then delete local
         products the remote no longer lists.
      3. Import collects and drop memberships not seen in this pass.
    """
    try:
        return run_catalog_sync()
    except SyncAlreadyRunning as exc:
        logger.warning("[%s] %s Skipping.", self.request.id, exc)
        return {'skipped': True}
