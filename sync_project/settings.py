import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'catalog-sync-insecure-key')
DEBUG = os.environ.get('DJANGO_DEBUG', '0') == '1'
ALLOWED_HOSTS = []

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'catalog_sync',
]

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DJANGO_DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DJANGO_DB_NAME', str(BASE_DIR / 'db.sqlite3')),
    }
}

# Holds the single-run lock, so it must be shared by the Celery worker and
# manage.py. Create the table with ``manage.py createcachetable``.
CACHES = {
    'default': {
        'BACKEND': os.environ.get('DJANGO_CACHE_BACKEND', 'django.core.cache.backends.db.DatabaseCache'),
        'LOCATION': os.environ.get('DJANGO_CACHE_LOCATION', 'catalog_sync_cache'),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
USE_TZ = True
TIME_ZONE = 'UTC'

MEDIA_ROOT = os.environ.get('MEDIA_ROOT', str(BASE_DIR / 'media'))
MEDIA_URL = '/media/'

# Remote catalog
SHOPIFY_API_BASE_URL = os.environ.get('SHOPIFY_API_BASE_URL', '')
SHOPIFY_ACCESS_TOKEN = os.environ.get('SHOPIFY_ACCESS_TOKEN', '')

CATALOG_SYNC_PAGE_SIZE = int(os.environ.get('CATALOG_SYNC_PAGE_SIZE', '250'))
CATALOG_SYNC_USE_PRODUCT_LISTINGS = os.environ.get('CATALOG_SYNC_USE_PRODUCT_LISTINGS', '1') == '1'
CATALOG_SYNC_ASSET_DIR = os.environ.get('CATALOG_SYNC_ASSET_DIR', 'catalog')
CATALOG_SYNC_LOCK_TIMEOUT = int(os.environ.get('CATALOG_SYNC_LOCK_TIMEOUT', '3600'))
CATALOG_SYNC_SCHEDULE = float(os.environ.get('CATALOG_SYNC_SCHEDULE', '3600'))

# Celery
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'memory://')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'cache+memory://')
CELERY_BEAT_SCHEDULE = {
    'sync-catalog': {
        'task': 'catalog_sync.sync_catalog',
        'schedule': CATALOG_SYNC_SCHEDULE,
    },
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'severity': {
            '()': 'catalog_sync.log.SeverityFormatter',
        },
    },
    'handlers': {
        'stdout': {
            'class': 'logging.StreamHandler',
            'stream': 'ext://sys.stdout',
            'formatter': 'severity',
        },
    },
    'loggers': {
        'catalog_sync': {
            'handlers': ['stdout'],
            'level': os.environ.get('CATALOG_SYNC_LOG_LEVEL', 'INFO'),
            'propagate': True,
        },
    },
}
