import logging
from urllib.parse import urlencode, urlparse

from link_preview.config import settings
from link_preview.services.enrichment import RequestExecutor
from link_preview.services.fetcher import FetchResponse, FetchResult, TransportError
from link_preview.services.icon_store import IconStore

logger = logging.getLogger(__name__)

IMAGE_ACCEPT = "image/avif,image/webp,image/png,image/svg+xml,image/*;q=0.8,*/*;q=0.5"


class IconResolver:
    """Picks an icon reference for a host.

    Order: a usable hint from the page, then the IconStore, then the fallback
    lookup service. Service answers are stored even when no icon was found;
    a lookup that never reached the service is not stored.
    """

    def __init__(
        self,
        store: IconStore,
        request: RequestExecutor,
        service_url: str | None = None,
        icon_size: int | None = None,
    ):
        self._store = store
        self._request = request
        self._service_url = service_url or settings.icon_service_url
        self._icon_size = icon_size or settings.icon_size

    async def resolve(
        self, host: str, icon_hint: str | None = None, timeout_ms: int | None = None
    ) -> str | None:
        if not host:
            return None
        try:
            if self.is_well_formed(icon_hint):
                await self._store.set(host, icon_hint)
                return icon_hint

            cached = self._store.lookup(host)
            if cached is not None:
                return cached.ref

            response = await self._lookup(host, timeout_ms)
            if isinstance(response, TransportError):
                logger.debug("Icon lookup for %s failed: %s", host, response.message)
                return None
            ref = self._accepted_ref(host, response)
            await self._store.set(host, ref)
            return ref
        except Exception:
            logger.warning("Icon resolution failed for %s", host, exc_info=True)
            return None

    def service_url_for(self, host: str) -> str:
        query = urlencode({"domain": host, "sz": self._icon_size})
        return f"{self._service_url}?{query}"

    @staticmethod
    def is_well_formed(ref: str | None) -> bool:
        if not ref:
            return False
        if ref.startswith("data:"):
            return ref.startswith("data:image/")
        try:
            parsed = urlparse(ref)
        except ValueError:
            return False
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    async def _lookup(self, host: str, timeout_ms: int | None) -> FetchResult:
        kwargs = {"headers": {"Accept": IMAGE_ACCEPT}}
        if timeout_ms is not None:
            kwargs["timeout_ms"] = timeout_ms
        return await self._request(self.service_url_for(host), **kwargs)

    def _accepted_ref(self, host: str, response: FetchResponse) -> str | None:
        if response.status_code >= 400 or "image" not in response.content_type:
            logger.debug("No icon for %s (status %d)", host, response.status_code)
            return None
        return self.service_url_for(host)
