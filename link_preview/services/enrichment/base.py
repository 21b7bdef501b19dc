import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import SplitResult, urlsplit

from link_preview.schemas import Metadata, ResolutionConfig
from link_preview.services.fetcher import FetchResponse, FetchResult
from link_preview.utils.text import sanitize_text
from link_preview.utils.url import fallback_title

logger = logging.getLogger(__name__)

RequestExecutor = Callable[..., Awaitable[FetchResult]]


@dataclass
class MetadataDraft:
    """Mutable record owned by a single resolution while it is being built.

    ``title`` stays None until something better than the URL-derived fallback
    is known; the fallback is applied in ``build``.
    """

    url: str
    title: str | None = None
    description: str | None = None
    image: str | None = None
    icon_ref: str | None = None
    site_name: str | None = None
    error: str | None = None

    def build(self) -> Metadata:
        return Metadata(
            url=self.url,
            title=sanitize_text(self.title) or fallback_title(self.url),
            description=self.description,
            image=self.image,
            icon_ref=self.icon_ref,
            site_name=self.site_name,
            error=self.error,
        )


@dataclass
class EnrichmentContext:
    original_url: str
    metadata: MetadataDraft
    request: RequestExecutor
    config: ResolutionConfig
    status_code: int | None = None
    url: SplitResult = field(init=False)

    def __post_init__(self):
        self.url = urlsplit(self.original_url)

    @property
    def host(self) -> str:
        return (self.url.hostname or "").lower()

    def sanitize_text(self, value: str | None) -> str | None:
        return sanitize_text(value)

    async def fetch_json(self, url: str, **kwargs) -> Any | None:
        """GET ``url`` through the shared request path and decode it as JSON.

        Returns None for transport failures, error statuses and bad payloads.
        """
        response = await self.request(url, **kwargs)
        if not isinstance(response, FetchResponse):
            logger.debug("Secondary request to %s failed: %s", url, response.message)
            return None
        if response.status_code >= 400:
            logger.debug("Secondary request to %s returned %d", url, response.status_code)
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug("Secondary request to %s returned invalid JSON", url)
            return None


class MetadataHandler(Protocol):
    """Domain-specific rule applied after extraction.

    ``matches`` may be sync or async. ``enrich`` mutates ``context.metadata``
    and must tolerate running more than once.
    """

    def matches(self, context: EnrichmentContext) -> bool | Awaitable[bool]: ...

    async def enrich(self, context: EnrichmentContext) -> None: ...


def host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)
