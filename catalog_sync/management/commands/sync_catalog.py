from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

from catalog_sync.exceptions import SyncAlreadyRunning, TransportError
from catalog_sync.tasks import run_catalog_sync


class Command(BaseCommand):
    help = 'Import collections, products and collects from the configured remote store.'

    def handle(self, *args, **options):
        try:
            run_catalog_sync()
        except (TransportError, ImproperlyConfigured, SyncAlreadyRunning) as exc:
            raise CommandError(str(exc)) from exc
        self.stdout.write('Done')
