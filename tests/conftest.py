"""Shared pytest fixtures: a scripted fetch client and a temporary icon database."""

import asyncio
from collections.abc import Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from link_preview.database import init_db
from link_preview.schemas import ResolutionConfig
from link_preview.services.enrichment import EnrichmentPipeline
from link_preview.services.fetcher import FetchResponse, FetchResult, TransportError
from link_preview.services.icon_store import IconStore
from link_preview.services.metadata import MetadataResolutionService


def html_response(url: str, html: str, status: int = 200, **headers) -> FetchResponse:
    return FetchResponse(
        url=url,
        status_code=status,
        headers={"content-type": "text/html; charset=utf-8", **headers},
        content=html.encode(),
        encoding="utf-8",
    )


def json_response(url: str, body: str, status: int = 200) -> FetchResponse:
    return FetchResponse(
        url=url,
        status_code=status,
        headers={"content-type": "application/json"},
        content=body.encode(),
        encoding="utf-8",
    )


class FakeFetchClient:
    """Scripted stand-in for FetchClient.

    Routes map a URL to a response, a TransportError, or a callable returning
    one. Unrouted URLs answer 404. ``release`` holds every request until set.
    """

    def __init__(self, routes: dict | None = None):
        self.routes: dict[str, FetchResult | Callable[[], FetchResult]] = dict(
            routes or {}
        )
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.release: asyncio.Event | None = None
        self.closed = False

    def calls_for(self, url: str) -> int:
        return self.calls.count(url)

    async def fetch(self, url, timeout_ms, *, method="GET", headers=None) -> FetchResult:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.release is not None:
                await self.release.wait()
            else:
                await asyncio.sleep(0)
            route = self.routes.get(url)
            if route is None:
                return FetchResponse(url=url, status_code=404)
            return route() if callable(route) else route
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def fake_fetcher() -> FakeFetchClient:
    return FakeFetchClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'icons.db'}")
    await init_db(engine)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def icon_store(session_factory, clock) -> IconStore:
    store = IconStore(session_factory, clock=clock)
    await store.load()
    return store


@pytest.fixture
def no_icon_config() -> ResolutionConfig:
    return ResolutionConfig(timeout_ms=5000, max_concurrent=10, show_icon=False)


@pytest.fixture
def make_service(fake_fetcher, icon_store):
    """Build a service around the fake fetcher; no default handlers unless given."""

    def _make(handlers=(), **kwargs) -> MetadataResolutionService:
        return MetadataResolutionService(
            fake_fetcher,
            icon_store,
            pipeline=EnrichmentPipeline(handlers),
            **kwargs,
        )

    return _make


TIMEOUT = TransportError("timeout", "Request timed out")
