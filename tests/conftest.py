# tests/conftest.py
import os
import sys
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

# ensure project root is importable
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app.main import app  # noqa: E402
from app.api.deps import get_backend  # noqa: E402
from app.services.backend import ProductBackend  # noqa: E402

BACKEND_BASE = "http://backend.test/api/web/v1"


class FakeBackend:
    """
    Stands in for the external product API behind an httpx.MockTransport.
    Records every forwarded request; answers with `responder(request)` or,
    when none is set, an empty successful list envelope.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responder: Optional[Callable[[httpx.Request], httpx.Response]] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responder is None:
            return httpx.Response(200, json={"status_code": "200", "is_success": True, "error_code": None, "data": []})
        return self.responder(request)

    def respond(self, status: int = 200, json: Any = None):
        self.responder = lambda request: httpx.Response(status, json=json)

    def fail(self, exc_type: type, message: str = "boom"):
        def _raise(request):
            raise exc_type(message, request=request)
        self.responder = _raise

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "backend was never called"
        return self.requests[-1]


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def backend(fake_backend):
    return ProductBackend(BACKEND_BASE, read_timeout=1.0, write_timeout=1.0, transport=httpx.MockTransport(fake_backend))


@pytest.fixture
def client(backend):
    """TestClient with the external backend replaced by FakeBackend."""
    app.dependency_overrides[get_backend] = lambda: backend
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_backend, None)


@pytest.fixture
def make_product():
    """
    Build a backend-shaped product dict.
    Usage: p = make_product(1, product_category="lamps")
    """
    def _fn(i: int = 1, **overrides) -> Dict[str, Any]:
        product = {
            "product_id": f"p{i}",
            "product_title": f"Product {i}",
            "product_price": 10.0 * i,
            "product_description": f"Description {i}",
            "product_category": "general",
            "product_image": f"https://img.example.com/{i}.jpg",
            "created_timestamp": "2026-10-01T10:00:00Z",
            "updated_timestamp": "2026-10-02T10:00:00Z",
        }
        product.update(overrides)
        return product
    return _fn


@pytest.fixture
def ok_envelope():
    """
    Build a successful envelope the way the backend sends one.
    Usage: body = ok_envelope([p1, p2], pagination={"page": 1, ...})
    """
    def _fn(data: Any, pagination: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        body = {"status_code": "200", "is_success": True, "error_code": None, "data": data}
        if pagination is not None:
            body["pagination"] = pagination
        return body
    return _fn
