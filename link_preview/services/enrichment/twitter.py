import re
from urllib.parse import quote

from bs4 import BeautifulSoup

from link_preview.services.enrichment.base import EnrichmentContext, host_matches

OEMBED_URL = "https://publish.twitter.com/oembed?url={url}"
STATUS_PATH_RE = re.compile(r"/status/\d+")

GENERIC_TITLES = ("x", "x.com", "twitter", "twitter.com")
GENERIC_FRAGMENTS = ("x (formerly twitter)", "on x", "on twitter")


class TwitterMetadataHandler:
    """Replaces X/Twitter's placeholder titles with the handle and tweet text."""

    def matches(self, context: EnrichmentContext) -> bool:
        return host_matches(context.host, "twitter.com") or host_matches(
            context.host, "x.com"
        )

    async def enrich(self, context: EnrichmentContext) -> None:
        metadata = context.metadata
        if not self._is_generic_title(metadata.title):
            return

        segments = [s for s in context.url.path.split("/") if s]
        if not segments:
            return
        metadata.title = f"@{segments[0]}"

        if not STATUS_PATH_RE.search(context.url.path):
            return

        data = await context.fetch_json(
            OEMBED_URL.format(url=quote(context.original_url, safe=""))
        )
        if not isinstance(data, dict):
            return
        text = self._tweet_text(data.get("html"))
        if text:
            metadata.description = text

    def _is_generic_title(self, title: str | None) -> bool:
        if not title:
            return True
        normalized = title.strip().lower()
        return normalized in GENERIC_TITLES or any(
            fragment in normalized for fragment in GENERIC_FRAGMENTS
        )

    def _tweet_text(self, embed_html: object) -> str | None:
        if not isinstance(embed_html, str) or not embed_html:
            return None
        paragraph = BeautifulSoup(embed_html, "html.parser").find("p")
        if paragraph is None:
            return None
        text = " ".join(paragraph.get_text(" ").split())
        return text or None
