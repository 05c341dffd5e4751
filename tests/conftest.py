import pytest

from gateway.api import routes
from gateway.fetch.base import BaseFetcher, FetchResult
from gateway.main import app
from gateway.ratelimit.limiter import InMemoryRateLimiter

class FakeClock:
    """Manually advanced monotonic clock for window tests"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

class RecordingFetcher(BaseFetcher):
    """Fetcher double that records every URL it is asked for"""

    def __init__(self, outcome=None, error: Exception = None):
        self.calls = []
        self.outcome = outcome
        self.error = error

    async def fetch(self, url: str):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        if self.outcome is not None:
            return self.outcome
        body = f"<html><body>content of {url}</body></html>"
        return FetchResult(
            body=body,
            final_url=url,
            response_url=url,
            status_code=200,
            content_type="text/html; charset=utf-8",
            size=len(body),
        )

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def limiter(clock):
    return InMemoryRateLimiter(max_requests=10, window_seconds=60, clock=clock)

@pytest.fixture
def fetcher():
    return RecordingFetcher()

@pytest.fixture(autouse=True)
def setup_test_environment(limiter, fetcher):
    """Inject an isolated rate limiter and a recording fetcher into the app"""
    app.dependency_overrides[routes.get_rate_limiter] = lambda: limiter
    app.dependency_overrides[routes.get_fetcher] = lambda: fetcher
    routes.rate_limiter.reset()

    yield

    app.dependency_overrides.clear()
    routes.rate_limiter.reset()
