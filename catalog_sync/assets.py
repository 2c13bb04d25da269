import logging
import posixpath
from urllib.parse import urlsplit

import requests
from django.conf import settings
from django.core.files.base import ContentFile

from .exceptions import AssetFetchError

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 60


def file_name_from_src(src: str) -> str:
    """Base name of a CDN url without its query string."""
    return posixpath.basename(urlsplit(src).path) or 'image'


class AssetFetcher:
    """Downloads image payloads into the image's file field."""

    def __init__(self, session: requests.Session = None):
        self._session = session or requests.Session()
        self._base_dir = settings.CATALOG_SYNC_ASSET_DIR.strip('/')

    def fetch(self, image, folder) -> None:
        """
        Replace ``image.file`` with the payload behind ``image.src``.

        The model instance is not saved; the caller persists it together
        with the changed source url.
        """
        try:
            response = self._session.get(image.src, timeout=DOWNLOAD_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise AssetFetchError('image', image.remote_id, f"download of {image.src} failed: {exc}") from exc

        if image.file:
            image.file.delete(save=False)
        name = f"{self._base_dir}/{folder}/{file_name_from_src(image.src)}"
        image.file.save(name, ContentFile(response.content), save=False)
        logger.debug("[%s] Downloaded %s to %s", image.remote_id, image.src, image.file.name)
