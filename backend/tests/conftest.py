import os
import sys

import httpx
import pytest

os.environ.setdefault("BACKEND_URL", "https://backend.test")
os.environ.setdefault("BACKEND_ANON_KEY", "anon-test-key")
os.environ.setdefault("SESSION_SECRET", "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef")
os.environ.setdefault("CHANGE_FEED_SECRET", "feed-secret")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.database import BackendClient  # noqa: E402

BASE_URL = "https://backend.test"


class FakeBackend:
    """Routes hosted-service calls to canned answers and records them.

    ``routes`` maps ``(method, path)`` to a value, a list of values consumed
    one per call, or a callable taking the request. Values that are not
    ``httpx.Response`` objects are returned as 200 JSON.
    """

    def __init__(self, routes):
        self.routes = dict(routes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": f"no route for {request.method} {request.url.path}"})

        answer = self.routes[key]
        if isinstance(answer, list) and answer and isinstance(answer[0], (httpx.Response, list)):
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if callable(answer):
            answer = answer(request)
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json=answer)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def make_backend():
    def factory(routes=None):
        fake = FakeBackend(routes or {})
        backend = BackendClient(BASE_URL, "anon-test-key", transport=httpx.MockTransport(fake))
        return backend, fake

    return factory
