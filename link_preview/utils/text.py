import html
import re

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_tags(value: str) -> str:
    return _TAG_RE.sub(" ", value)


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip()


def sanitize_text(value: str | None) -> str | None:
    """Decode entities, drop markup and collapse whitespace.

    Returns None when nothing readable is left.
    """
    if not value:
        return None
    cleaned = collapse_whitespace(strip_tags(html.unescape(value)))
    return cleaned or None
