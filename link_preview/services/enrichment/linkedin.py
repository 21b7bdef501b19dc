import re

from link_preview.services.enrichment.base import EnrichmentContext, host_matches

LEADING_HASHTAGS_RE = re.compile(r"^(?:#\w+\s*)+")
COMMENT_COUNT_RE = re.compile(r"^\d+\s+comments?$", re.IGNORECASE)
DASH = "—"


def _remove_leading_hashtags(text: str) -> str:
    return LEADING_HASHTAGS_RE.sub("", text.strip()).strip()


def _is_comment_count(text: str) -> bool:
    return bool(COMMENT_COUNT_RE.match(text.strip()))


def _split_dash(text: str) -> tuple[str, str] | None:
    if DASH not in text:
        return None
    before, after = text.split(DASH, 1)
    return before.strip(), after.strip()


def clean_linkedin_title(raw_title: str) -> str:
    """Turn ``"#tags | Author | 17 comments — text"`` into ``"Author — text"``."""
    original = raw_title.strip()
    if not original:
        return original

    author = None
    content = None
    parts = [p.strip() for p in original.split("|")]

    if len(parts) >= 2:
        start = 1 if parts[0].startswith("#") else 0
        for part in parts[start:]:
            if not part or part.startswith("#") or _is_comment_count(part):
                continue
            split = _split_dash(part)
            if split is not None:
                before, after = split
                if before and not _is_comment_count(before):
                    author = before
                if after:
                    content = after
                break
            if author is None:
                author = part

        if content is None:
            for part in parts:
                split = _split_dash(part)
                if split is not None and split[1]:
                    content = split[1]
                    break

    if author is None and content is None:
        split = _split_dash(original)
        if split is not None:
            before, after = split
            author = _remove_leading_hashtags(before) or None
            content = after or None

    if author is None and content is None:
        return _remove_leading_hashtags(original) or original

    if author and content:
        return f"{author} {DASH} {content}"
    return content or author or original


class LinkedInMetadataHandler:
    def matches(self, context: EnrichmentContext) -> bool:
        return host_matches(context.host, "linkedin.com")

    async def enrich(self, context: EnrichmentContext) -> None:
        metadata = context.metadata
        if metadata.title:
            metadata.title = clean_linkedin_title(metadata.title)
        if not metadata.site_name:
            metadata.site_name = "LinkedIn"
