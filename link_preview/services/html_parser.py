"""Metadata extraction from raw HTML.

Sources are consulted in priority order per field:
Open Graph, then Twitter cards, then the plain document tags, then JSON-LD.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from link_preview.utils.text import sanitize_text

logger = logging.getLogger(__name__)

TITLE_KEYS = ("og:title", "twitter:title", "title")
DESCRIPTION_KEYS = ("og:description", "twitter:description", "description")
IMAGE_KEYS = ("og:image", "twitter:image", "twitter:image:src")
SITE_NAME_KEYS = ("og:site_name", "application-name")

JSON_LD_TITLE_KEYS = ("name", "headline", "title")
JSON_LD_DESCRIPTION_KEYS = ("description", "summary")


@dataclass(frozen=True)
class RawFields:
    title: str | None = None
    description: str | None = None
    image: str | None = None
    site_name: str | None = None
    icon_hint: str | None = None


class HtmlMetadataExtractor:
    def extract(
        self, raw: bytes | str, base_url: str = "", encoding: str | None = None
    ) -> RawFields:
        """Parse ``raw`` into RawFields. Malformed input yields empty fields.

        ``encoding`` is the charset from the HTTP headers; without it the
        parser sniffs the document.
        """
        try:
            if isinstance(raw, bytes) and encoding:
                soup = BeautifulSoup(raw, "lxml", from_encoding=encoding)
            else:
                soup = BeautifulSoup(raw, "lxml")
            return self._extract(soup, base_url)
        except Exception as e:
            logger.debug("HTML extraction failed for %s: %s", base_url or "<unknown>", e)
            return RawFields()

    def _extract(self, soup: BeautifulSoup, base_url: str) -> RawFields:
        meta = self._collect_meta(soup)

        title = self._first(meta.get(key) for key in TITLE_KEYS)
        if title is None and soup.title is not None:
            title = sanitize_text(soup.title.get_text())
        description = self._first(meta.get(key) for key in DESCRIPTION_KEYS)

        if title is None or description is None:
            ld_title, ld_description = self._json_ld(soup)
            title = title or ld_title
            description = description or ld_description

        image = self._first(meta.get(key) for key in IMAGE_KEYS)
        if image:
            image = urljoin(base_url, image)

        return RawFields(
            title=title,
            description=description,
            image=image,
            site_name=self._first(meta.get(key) for key in SITE_NAME_KEYS),
            icon_hint=self._icon_hint(soup, base_url),
        )

    def _collect_meta(self, soup: BeautifulSoup) -> dict[str, str]:
        """First ``content`` per meta key, keyed by lowercased property/name."""
        found: dict[str, str] = {}
        for tag in soup.find_all("meta"):
            key = tag.get("property") or tag.get("name")
            content = tag.get("content")
            if not key or content is None:
                continue
            key = key.strip().lower()
            if key not in found and sanitize_text(content):
                found[key] = content
        return found

    def _first(self, candidates) -> str | None:
        for candidate in candidates:
            cleaned = sanitize_text(candidate)
            if cleaned:
                return cleaned
        return None

    def _icon_hint(self, soup: BeautifulSoup, base_url: str) -> str | None:
        for link in soup.find_all("link", href=True):
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            rel = [r.lower() for r in rel]
            if "icon" in rel or "apple-touch-icon" in rel:
                href = link["href"].strip()
                if not href:
                    continue
                if href.startswith("data:"):
                    return href
                resolved = urljoin(base_url, href)
                if urlparse(resolved).scheme in ("http", "https"):
                    return resolved
        return None

    def _json_ld(self, soup: BeautifulSoup) -> tuple[str | None, str | None]:
        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            text = script.string or script.get_text()
            if not text or not text.strip():
                continue
            try:
                data = json.loads(text)
            except ValueError:
                continue
            found = self._search_json_ld(data)
            if found is not None:
                return found
        return None, None

    def _search_json_ld(self, value: Any) -> tuple[str | None, str | None] | None:
        if isinstance(value, list):
            for item in value:
                found = self._search_json_ld(item)
                if found is not None:
                    return found
            return None
        if not isinstance(value, dict):
            return None

        title = self._first(
            value.get(k) for k in JSON_LD_TITLE_KEYS if isinstance(value.get(k), str)
        )
        description = self._first(
            value.get(k)
            for k in JSON_LD_DESCRIPTION_KEYS
            if isinstance(value.get(k), str)
        )
        if title or description:
            return title, description

        for nested in value.values():
            found = self._search_json_ld(nested)
            if found is not None:
                return found
        return None
