import re
from urllib.parse import unquote, urlencode

from link_preview.services.enrichment.base import EnrichmentContext

ARTICLE_PATH_RE = re.compile(r"^/wiki/([^/?#]+)")


class WikipediaMetadataHandler:
    """Names the site and fills a missing description from the article intro."""

    def matches(self, context: EnrichmentContext) -> bool:
        return context.host.endswith(".wikipedia.org")

    async def enrich(self, context: EnrichmentContext) -> None:
        metadata = context.metadata
        metadata.site_name = "Wikipedia"

        if metadata.description:
            return

        match = ARTICLE_PATH_RE.match(context.url.path)
        if not match:
            return

        params = {
            "action": "query",
            "format": "json",
            "titles": unquote(match.group(1)),
            "prop": "extracts|description",
            "exintro": "1",
            "explaintext": "1",
        }
        api_url = f"{context.url.scheme}://{context.url.netloc}/w/api.php?{urlencode(params)}"
        data = await context.fetch_json(api_url)
        if not isinstance(data, dict):
            return

        pages = (data.get("query") or {}).get("pages") or {}
        page = next(iter(pages.values()), None)
        if not isinstance(page, dict):
            return

        description = page.get("extract") or page.get("description")
        if isinstance(description, str) and description.strip():
            # Full intro; length limits belong to the renderer.
            metadata.description = description.strip()
