"""Resolution of a URL into a preview Metadata record.

A URL moves Absent -> Pending -> cached. The pending task is registered in
the same synchronous step as the cache miss, so concurrent callers for one URL
share a single fetch. Every outcome, including failures, is a cached Metadata.
"""

import asyncio
import logging
from functools import partial
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from link_preview.config import settings
from link_preview.schemas import Metadata, ResolutionConfig, ServiceStats
from link_preview.services.cache import BoundedCache
from link_preview.services.enrichment import (
    EnrichmentContext,
    EnrichmentPipeline,
    MetadataDraft,
    MetadataHandler,
    create_default_handlers,
)
from link_preview.services.fetcher import (
    FetchClient,
    FetchResponse,
    FetchResult,
    TransportError,
)
from link_preview.services.gate import ConcurrencyGate
from link_preview.services.html_parser import HtmlMetadataExtractor, RawFields
from link_preview.services.icon_resolver import IconResolver
from link_preview.services.icon_store import DAY_MS, IconStore
from link_preview.services.validator import Ok, ResultValidator
from link_preview.utils.url import canonicalize_url, fallback_title

logger = logging.getLogger(__name__)


class MetadataResolutionService:
    def __init__(
        self,
        fetcher: FetchClient,
        icon_store: IconStore,
        *,
        cache: BoundedCache[str, Metadata] | None = None,
        gate: ConcurrencyGate | None = None,
        extractor: HtmlMetadataExtractor | None = None,
        validator: ResultValidator | None = None,
        pipeline: EnrichmentPipeline | None = None,
        default_config: ResolutionConfig | None = None,
    ):
        self._fetcher = fetcher
        self._icon_store = icon_store
        self._cache = (
            cache if cache is not None else BoundedCache(settings.metadata_cache_max_size)
        )
        self._pending: dict[str, asyncio.Task[Metadata]] = {}
        self._default_config = default_config or ResolutionConfig()
        self._gate = gate or ConcurrencyGate(self._default_config.max_concurrent)
        self._extractor = extractor or HtmlMetadataExtractor()
        self._validator = validator or ResultValidator()
        self._pipeline = (
            pipeline
            if pipeline is not None
            else EnrichmentPipeline(create_default_handlers())
        )
        self._icons = IconResolver(icon_store, self.request)

    @classmethod
    def from_settings(
        cls, session_factory: async_sessionmaker[AsyncSession]
    ) -> "MetadataResolutionService":
        store = IconStore(
            session_factory, expiry_ms=settings.icon_cache_expiry_days * DAY_MS
        )
        return cls(FetchClient(), store)

    @property
    def gate(self) -> ConcurrencyGate:
        return self._gate

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def resolve(
        self, url: str, config: ResolutionConfig | None = None
    ) -> Metadata:
        """Return preview metadata for ``url``; never raises for network or content problems."""
        config = config or self._default_config
        if not isinstance(config, ResolutionConfig):
            raise TypeError("config must be a ResolutionConfig")
        key = canonicalize_url(url) if isinstance(url, str) else ""
        if not key:
            raise ValueError("url must be a non-empty string")

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        task = self._pending.get(key)
        if task is None:
            if config.max_concurrent != self._gate.limit:
                self._gate.resize(config.max_concurrent)
            task = asyncio.create_task(self._resolve_and_store(key, config))
            self._pending[key] = task
        else:
            logger.debug("Joining in-flight resolution for %s", key)
        # A cancelled waiter must not cancel the shared resolution.
        return await asyncio.shield(task)

    async def request(
        self,
        url: str,
        *,
        timeout_ms: int | None = None,
        method: str = "GET",
        headers: dict[str, str] | None = None,
    ) -> FetchResult:
        """Outbound request through the concurrency gate."""
        if timeout_ms is None:
            timeout_ms = self._default_config.timeout_ms
        async with self._gate.slot():
            return await self._fetcher.fetch(
                url, timeout_ms, method=method, headers=headers
            )

    def register_handler(self, handler: MetadataHandler) -> None:
        self._pipeline.register(handler)

    def invalidate(self, url: str) -> bool:
        return self._cache.delete(canonicalize_url(url))

    async def clear_all(self) -> None:
        self._cache.clear()
        await self._icon_store.clear()

    def stats(self) -> ServiceStats:
        return ServiceStats(cache=self._cache.stats(), icon=self._icon_store.stats())

    async def start(self) -> None:
        """Rehydrate the persistent icon cache."""
        await self._icon_store.load()

    async def aclose(self) -> None:
        await self._fetcher.aclose()

    async def _resolve_and_store(self, key: str, config: ResolutionConfig) -> Metadata:
        try:
            try:
                metadata = await self._resolve_uncached(key, config)
            except Exception as e:
                logger.exception("Unexpected failure resolving %s", key)
                metadata = Metadata(
                    url=key,
                    title=fallback_title(key),
                    error=f"internal:{str(e) or type(e).__name__}",
                )
            self._cache.set(key, metadata)
            return metadata
        finally:
            self._pending.pop(key, None)

    async def _resolve_uncached(self, url: str, config: ResolutionConfig) -> Metadata:
        draft = MetadataDraft(url=url)
        result = await self.request(url, timeout_ms=config.timeout_ms)

        if isinstance(result, TransportError):
            draft.error = result.tag
            icon_hint = None
            final_url = url
        else:
            icon_hint = self._apply_response(draft, result)
            final_url = result.url or url

        # Failure records keep the fallback fields; no handler requests for them.
        if draft.error is None:
            context = EnrichmentContext(
                original_url=url,
                metadata=draft,
                request=partial(self.request, timeout_ms=config.timeout_ms),
                config=config,
                status_code=result.status_code,
            )
            draft = await self._pipeline.run(context)

        if config.show_icon:
            try:
                host = (urlsplit(final_url).hostname or "").lower()
            except ValueError:
                host = ""
            draft.icon_ref = await self._icons.resolve(
                host, icon_hint, timeout_ms=config.timeout_ms
            )

        metadata = draft.build()
        if metadata.error:
            logger.info("Resolved %s with error %s", url, metadata.error)
        return metadata

    def _apply_response(self, draft: MetadataDraft, response: FetchResponse) -> str | None:
        """Fill ``draft`` from the page and return the page's icon hint."""
        fields = RawFields()
        if response.status_code < 400 and "html" in response.content_type:
            fields = self._extractor.extract(
                response.content, base_url=response.url, encoding=response.charset
            )

        outcome = self._validator.classify(response, fields)
        if isinstance(outcome, Ok):
            draft.title = fields.title
            draft.description = fields.description
            draft.image = fields.image
            draft.site_name = fields.site_name
        else:
            draft.error = outcome.tag
        return fields.icon_hint
