import asyncio

import httpx
import pytest

from trends_explorer.config import TrendsConfig

BASE_URL = "https://trends.test/api"


@pytest.fixture
def config():
    return TrendsConfig(base_url=BASE_URL)


class FakeTrendsAPI:
    """Routes requests by endpoint path to canned responses.

    ``routes[path]`` is either a JSON body, an ``httpx.Response``, or a
    callable ``(request) -> body | Response``.  ``delays`` maps the first
    ``keywords``/``keyword`` value of a request to a sleep in seconds, so
    tests can make one request finish after another.
    """

    def __init__(self, routes=None, delays=None):
        self.routes = dict(routes or {})
        self.delays = dict(delays or {})
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.rsplit("/", 1)[-1]
        key = (request.url.params.get("keywords")
               or request.url.params.get("keyword"))
        delay = self.delays.get(key, 0)
        if delay:
            await asyncio.sleep(delay)

        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, json={"error": f"unknown endpoint {path}"})
        if callable(route):
            route = route(request)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def fake_api():
    return FakeTrendsAPI()
