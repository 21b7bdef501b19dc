import logging
from typing import Any

from link_preview.services.enrichment.base import EnrichmentContext, host_matches

logger = logging.getLogger(__name__)

GENERIC_TITLES = ("reddit", "reddit.com")


class RedditMetadataHandler:
    """Reddit serves a generic shell to crawlers; the post JSON has the real text."""

    def matches(self, context: EnrichmentContext) -> bool:
        return host_matches(context.host, "reddit.com")

    async def enrich(self, context: EnrichmentContext) -> None:
        metadata = context.metadata
        needs_title = self._is_generic_title(metadata.title)
        needs_description = not metadata.description
        if not (needs_title or needs_description):
            return
        if "/comments/" not in context.url.path:
            return

        post = self._first_post(await context.fetch_json(self._json_url(context)))
        if post is None:
            return

        raw_title = post.get("title") if isinstance(post.get("title"), str) else ""
        raw_title = raw_title.strip()
        subreddit = post.get("subreddit") if isinstance(post.get("subreddit"), str) else ""
        subreddit = subreddit.strip()

        body = post.get("selftext")
        if not isinstance(body, str) or not body.strip():
            body = post.get("public_description")
        description = context.sanitize_text(body if isinstance(body, str) else None)

        if needs_title:
            title = f"r/{subreddit} - Reddit" if subreddit else raw_title
            if title:
                metadata.title = title
        if needs_description:
            metadata.description = description or context.sanitize_text(raw_title)

    def _is_generic_title(self, title: str | None) -> bool:
        if not title:
            return True
        normalized = title.strip().lower()
        return normalized in GENERIC_TITLES or "the heart of the internet" in normalized

    def _json_url(self, context: EnrichmentContext) -> str:
        url = context.url
        path = url.path.rstrip("/") + "/.json"
        query = f"?{url.query}" if url.query else ""
        return f"{url.scheme}://{url.netloc}{path}{query}"

    def _first_post(self, payload: Any) -> dict | None:
        try:
            post = payload[0]["data"]["children"][0]["data"]
        except (KeyError, IndexError, TypeError):
            logger.debug("Unexpected Reddit payload shape")
            return None
        return post if isinstance(post, dict) else None
