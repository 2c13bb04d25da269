import logging
import time
from threading import Lock
from typing import Optional

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .exceptions import TransportError

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RATE_LIMIT = 2  # requests per second, REST admin API bucket leak rate
MAX_PAGE_SIZE = 250
REQUEST_TIMEOUT = 30

# The product listing endpoint needs a sales-channel scope; these mean "not available".
LISTING_UNAVAILABLE_STATUSES = (401, 403, 404)


class RateLimiter:
    """
    Fixed-window rate limiter (thread-safe).

    Allows up to `rate` requests per 1-second window.
    The window starts on the first request. While tokens remain, requests
    proceed immediately. When the bucket is empty, the limiter sleeps until
    the current window expires, then opens a fresh window with a full bucket.
    """

    def __init__(self, rate: int):
        self._rate = rate
        self._tokens = rate
        self._window_start = None   # window starts lazily on first request
        self._lock = Lock()

    def acquire(self):
        with self._lock:
            now = time.monotonic()

            if self._window_start is None or (now - self._window_start) >= 1.0:
                self._window_start = now
                self._tokens = self._rate

            if self._tokens > 0:
                self._tokens -= 1
            else:
                wait = 1.0 - (now - self._window_start)
                if wait > 0:
                    time.sleep(wait)
                self._window_start = time.monotonic()
                self._tokens = self._rate - 1   # consume 1 token for this request


class ShopifyClient:
    """Read-only access to the paginated catalog listings of the remote store."""

    def __init__(self, base_url: Optional[str] = None, access_token: Optional[str] = None):
        base_url = base_url or settings.SHOPIFY_API_BASE_URL
        access_token = access_token or settings.SHOPIFY_ACCESS_TOKEN
        if not base_url or not access_token:
            raise ImproperlyConfigured(
                "SHOPIFY_API_BASE_URL and SHOPIFY_ACCESS_TOKEN must be set to import the catalog."
            )
        self._base_url = base_url.rstrip('/')
        self._session = requests.Session()
        self._session.headers.update({
            'X-Shopify-Access-Token': access_token,
            'Accept': 'application/json',
        })
        self._rate_limiter = RateLimiter(RATE_LIMIT)

    def collections(self, since_id=0, limit: int = MAX_PAGE_SIZE) -> list[dict]:
        return self._list('custom_collections', params={'limit': limit, 'since_id': since_id})

    def products(self, since_id=0, limit: int = MAX_PAGE_SIZE, ids=None) -> list[dict]:
        """One page of globally published products, optionally restricted to ``ids``."""
        params = {'limit': limit, 'since_id': since_id, 'published_scope': 'global'}
        if ids:
            params['ids'] = ','.join(str(i) for i in ids)
        return self._list('products', params=params)

    def collects(self, since_id=0, limit: int = MAX_PAGE_SIZE) -> list[dict]:
        return self._list('collects', params={'limit': limit, 'since_id': since_id})

    def product_listing_ids(self, limit: int = MAX_PAGE_SIZE) -> list:
        """
        Ids of the products published to this app's sales channel.

        Pages are followed through the ``Link: rel="next"`` header, whose url
        already carries the ``page_info`` cursor. Returns an empty list when
        the store does not grant the listing scope.
        """
        url = self._url('product_listings/product_ids')
        params = {'limit': limit}
        ids = []
        while url:
            try:
                response = self._request_with_retry('GET', url, params=params)
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else None
                if status in LISTING_UNAVAILABLE_STATUSES:
                    logger.warning("[listings] Product listings unavailable (HTTP %s), importing all products", status)
                    return []
                raise TransportError(f"GET {url} failed: {exc}") from exc
            except requests.RequestException as exc:
                raise TransportError(f"GET {url} failed: {exc}") from exc
            ids.extend(self._envelope(response, url, 'product_ids'))

            next_url = response.links.get('next', {}).get('url')
            if next_url == url:
                break
            url, params = next_url, None
        return ids

    def _list(self, resource: str, params: dict) -> list[dict]:
        url = self._url(resource)
        try:
            response = self._request_with_retry('GET', url, params=params)
        except requests.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc
        return self._envelope(response, url, resource)

    def _url(self, resource: str) -> str:
        return f"{self._base_url}/{resource}.json"

    @staticmethod
    def _envelope(response: requests.Response, url: str, key: str) -> list:
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(f"GET {url} returned invalid JSON") from exc
        items = payload.get(key) if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise TransportError(f"GET {url} returned no '{key}' list")
        return items

    def _request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault('timeout', REQUEST_TIMEOUT)
        backoff = 1.0
        for attempt in range(1, MAX_RETRIES + 1):
            self._rate_limiter.acquire()
            response = self._session.request(method, url, **kwargs)

            if response.status_code == 429:
                retry_after = self._parse_retry_after(response)
                wait = retry_after if retry_after is not None else backoff
                logger.warning(
                    "[%s] 429 Too Many Requests (attempt %d/%d), waiting %.1fs before retry",
                    url, attempt, MAX_RETRIES, wait,
                )
                time.sleep(wait)
                backoff *= 2
                continue

            response.raise_for_status()
            return response

        raise TransportError(
            f"API request {method} {url} failed after {MAX_RETRIES} retries due to rate limiting."
        )

    @staticmethod
    def _parse_retry_after(response: requests.Response):
        """Return float seconds from Retry-After header, or None if absent/invalid."""
        header = response.headers.get('Retry-After')
        if header is None:
            return None
        try:
            return float(header)
        except (TypeError, ValueError):
            return None
