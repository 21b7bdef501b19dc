import inspect
import logging
from collections.abc import Iterable

from link_preview.services.enrichment.base import (
    EnrichmentContext,
    MetadataDraft,
    MetadataHandler,
)

logger = logging.getLogger(__name__)


class EnrichmentPipeline:
    """Runs handlers in registration order against one context.

    A handler that raises is logged and skipped; later handlers still run and
    see whatever the earlier ones managed to write.
    """

    def __init__(self, handlers: Iterable[MetadataHandler] = ()):
        self._handlers: list[MetadataHandler] = list(handlers)

    @property
    def handlers(self) -> tuple[MetadataHandler, ...]:
        return tuple(self._handlers)

    def register(self, handler: MetadataHandler) -> None:
        self._handlers.append(handler)

    async def run(self, context: EnrichmentContext) -> MetadataDraft:
        for handler in self._handlers:
            name = type(handler).__name__
            try:
                matched = handler.matches(context)
                if inspect.isawaitable(matched):
                    matched = await matched
                if not matched:
                    continue
                result = handler.enrich(context)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning(
                    "Enrichment handler %s failed for %s",
                    name,
                    context.original_url,
                    exc_info=True,
                )
        return context.metadata
