from urllib.parse import parse_qs

from link_preview.services.enrichment.base import EnrichmentContext
from link_preview.utils.text import collapse_whitespace

GENERIC_TITLES = ("google", "google search")


class GoogleSearchMetadataHandler:
    def matches(self, context: EnrichmentContext) -> bool:
        if context.url.path != "/search":
            return False
        return "google" in context.host.split(".")

    async def enrich(self, context: EnrichmentContext) -> None:
        query = self._extract_query(context)
        if not query:
            return
        if self._has_specific_title(context.metadata.title):
            return
        context.metadata.title = f"Google Search — {query}"

    def _extract_query(self, context: EnrichmentContext) -> str | None:
        params = parse_qs(context.url.query)
        values = params.get("q") or params.get("query")
        if not values:
            return None
        return collapse_whitespace(values[0]) or None

    def _has_specific_title(self, title: str | None) -> bool:
        if not title:
            return False
        normalized = collapse_whitespace(title).lower()
        return bool(normalized) and normalized not in GENERIC_TITLES
