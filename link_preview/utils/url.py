from urllib.parse import unquote, urlparse


def canonicalize_url(url: str) -> str:
    return url.strip()


def display_host(url: str) -> str | None:
    """Host name without a leading ``www.``, or None if the URL has none."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


def fallback_title(url: str) -> str:
    """Title derived from the URL alone, e.g. ``a.test / x``."""
    host = display_host(url)
    if not host:
        return url.strip() or "untitled"

    segments = [s for s in urlparse(url).path.split("/") if s]
    if not segments:
        return host
    return f"{host} / {unquote(segments[-1])}"
