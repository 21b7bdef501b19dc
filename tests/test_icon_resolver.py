"""Tests for IconResolver: page hints, cached answers and the lookup service."""

import pytest

from conftest import TIMEOUT
from link_preview.services.fetcher import FetchResponse
from link_preview.services.icon_resolver import IconResolver

SERVICE = "https://icons.test/s2/favicons"


class FakeRequest:
    def __init__(self, response):
        self.response = response
        self.calls = []

    async def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def image_response(url=SERVICE):
    return FetchResponse(
        url=url, status_code=200, headers={"content-type": "image/png"}, content=b"\x89PNG"
    )


@pytest.fixture
def resolver_for(icon_store):
    def _make(response):
        request = FakeRequest(response)
        return IconResolver(icon_store, request, service_url=SERVICE, icon_size=64), request

    return _make


class TestResolve:
    @pytest.mark.asyncio
    async def test_page_hint_is_used_and_stored(self, resolver_for, icon_store):
        resolver, request = resolver_for(image_response())
        ref = await resolver.resolve("example.com", "https://example.com/favicon.ico")

        assert ref == "https://example.com/favicon.ico"
        assert icon_store.get("example.com") == ref
        assert request.calls == []

    @pytest.mark.asyncio
    async def test_service_lookup_when_no_hint(self, resolver_for, icon_store):
        resolver, request = resolver_for(image_response())
        ref = await resolver.resolve("example.com", timeout_ms=1500)

        assert ref == f"{SERVICE}?domain=example.com&sz=64"
        url, kwargs = request.calls[0]
        assert url == ref
        assert kwargs["timeout_ms"] == 1500
        assert kwargs["headers"]["Accept"].startswith("image/")
        assert icon_store.get("example.com") == ref

    @pytest.mark.asyncio
    async def test_cached_answer_skips_lookup(self, resolver_for, icon_store):
        await icon_store.set("example.com", "https://cdn.test/cached.png")
        resolver, request = resolver_for(image_response())

        assert await resolver.resolve("example.com") == "https://cdn.test/cached.png"
        assert request.calls == []

    @pytest.mark.asyncio
    async def test_negative_answer_is_cached(self, resolver_for, icon_store):
        resolver, request = resolver_for(FetchResponse(url=SERVICE, status_code=404))

        assert await resolver.resolve("nowhere.test") is None
        assert await resolver.resolve("nowhere.test") is None
        assert len(request.calls) == 1
        assert icon_store.lookup("nowhere.test").ref is None

    @pytest.mark.asyncio
    async def test_non_image_answer_is_rejected(self, resolver_for):
        html = FetchResponse(
            url=SERVICE, status_code=200, headers={"content-type": "text/html"}
        )
        resolver, _ = resolver_for(html)
        assert await resolver.resolve("example.com") is None

    @pytest.mark.asyncio
    async def test_transport_error_is_not_cached(self, resolver_for, icon_store):
        resolver, request = resolver_for(TIMEOUT)

        assert await resolver.resolve("slow.test") is None
        assert icon_store.lookup("slow.test") is None
        assert await resolver.resolve("slow.test") is None
        assert len(request.calls) == 2

    @pytest.mark.asyncio
    async def test_unexpected_failure_gives_none(self, resolver_for):
        resolver, _ = resolver_for(RuntimeError("boom"))
        assert await resolver.resolve("example.com") is None

    @pytest.mark.asyncio
    async def test_empty_host(self, resolver_for):
        resolver, request = resolver_for(image_response())
        assert await resolver.resolve("") is None
        assert request.calls == []


class TestWellFormed:
    @pytest.mark.parametrize(
        "ref, expected",
        [
            ("https://example.com/icon.png", True),
            ("http://example.com/icon.png", True),
            ("data:image/png;base64,AAAA", True),
            ("data:text/html,<script>", False),
            ("javascript:alert(1)", False),
            ("/relative.ico", False),
            ("", False),
            (None, False),
        ],
    )
    def test_is_well_formed(self, ref, expected):
        assert IconResolver.is_well_formed(ref) is expected
