import httpx
import pytest
from fastapi.testclient import TestClient

from portal_reports.core.deps import get_fetcher
from portal_reports.main import app
from portal_reports.services.cache import ResponseCache
from portal_reports.services.fetcher import ReportFetcher
from portal_reports.services.token_provider import StaticTokenProvider

BASE_URL = "https://portal.test"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Upstream:
    """Scripted upstream: each entry is a JSON body, an exception or an (status, body) tuple."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected upstream call: {request.url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, tuple):
            status_code, body = item
            return httpx.Response(status_code, json=body, request=request)
        return httpx.Response(200, json=item, request=request)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def make_fetcher(clock, sleeps):
    def factory(upstream: Upstream, **kwargs) -> ReportFetcher:
        async def record_sleep(delay: float) -> None:
            sleeps.append(delay)

        options = {
            "base_url": BASE_URL,
            "max_retries": 3,
            "base_delay": 1.0,
            "sleep": record_sleep,
        }
        options.update(kwargs)
        return ReportFetcher(
            client=httpx.AsyncClient(transport=httpx.MockTransport(upstream)),
            token_provider=StaticTokenProvider({"acme": "acme-token"}, default_token="fallback-token"),
            cache=ResponseCache(ttl=300.0, clock=clock),
            **options,
        )

    return factory


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def use_fetcher(client):
    def install(fetcher: ReportFetcher) -> None:
        app.dependency_overrides[get_fetcher] = lambda: fetcher

    return install
