import asyncio
import json
import logging
import socket
import ssl
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import httpx

from link_preview.config import settings

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


@dataclass(frozen=True)
class FetchResponse:
    url: str
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    encoding: str | None = None

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    @property
    def content_type(self) -> str:
        return (self.header("content-type") or "").lower()

    @property
    def charset(self) -> str | None:
        """Charset named in the Content-Type header, if any."""
        for param in self.content_type.split(";")[1:]:
            name, _, value = param.partition("=")
            if name.strip() == "charset":
                return value.strip().strip("\"'") or None
        return None

    @property
    def text(self) -> str:
        try:
            return self.content.decode(self.encoding or "utf-8", errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text)


@dataclass(frozen=True)
class TransportError:
    """A request that produced no HTTP response at all."""

    kind: str  # timeout | dns | tls | connection | invalid_url | network
    message: str
    url: str = ""

    @property
    def tag(self) -> str:
        return f"network:{self.message}"


FetchResult = FetchResponse | TransportError


def _has_cause(exc: BaseException, kind: type[BaseException]) -> bool:
    seen = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, kind):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def classify_transport_error(exc: Exception, url: str) -> TransportError:
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return TransportError("timeout", "Request timed out", url)
    if isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return TransportError("invalid_url", f"Invalid URL: {exc}", url)
    if _has_cause(exc, ssl.SSLError):
        return TransportError("tls", f"TLS handshake failed: {exc}", url)
    if _has_cause(exc, socket.gaierror):
        return TransportError("dns", f"DNS lookup failed: {exc}", url)
    if isinstance(exc, httpx.ConnectError):
        return TransportError("connection", f"Connection failed: {exc}", url)
    return TransportError("network", str(exc) or type(exc).__name__, url)


class FetchClient:
    """Issues single GET/HEAD requests and never raises transport failures.

    Non-2xx statuses are returned as ordinary responses.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str | None = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._user_agent = user_agent or settings.user_agent

    def build_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Accept": DEFAULT_ACCEPT,
            "Accept-Language": "en-US,en;q=0.9",
            "User-Agent": self._user_agent,
        }
        if extra:
            headers.update(extra)
        return headers

    async def fetch(
        self,
        url: str,
        timeout_ms: int,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
    ) -> FetchResult:
        try:
            parsed = urlparse(url)
        except ValueError:
            return TransportError("invalid_url", f"Invalid URL: {url}", url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return TransportError("invalid_url", f"Invalid URL: {url}", url)

        timeout = timeout_ms / 1000 if timeout_ms > 0 else None
        request = self._client.request(
            method,
            url,
            headers=self.build_headers(headers),
            timeout=httpx.Timeout(timeout),
        )
        try:
            # httpx timeouts are per phase; wait_for bounds the whole exchange.
            response = await asyncio.wait_for(request, timeout)
        except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError, OSError) as e:
            error = classify_transport_error(e, url)
            logger.warning("Request to %s failed (%s): %s", url, error.kind, error.message)
            return error

        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            content=response.content,
            encoding=response.encoding,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
