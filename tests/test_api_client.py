# tests/test_api_client.py
import asyncio
import json

import httpx
import pytest

from app.main import app
from app.api.deps import get_backend
from app.client.api import ProductApiClient
from app.client.notifications import NETWORK_MESSAGE, TIMEOUT_MESSAGE, Notifier
from app.client.session import LocalIdentityProvider, SessionStore, hash_password
from app.client.validation import ProductValidationError

PROXY_BASE = "http://testserver/api"


@pytest.fixture
def proxy_transport(backend):
    """ASGI transport into the real proxy app, with the backend faked out."""
    app.dependency_overrides[get_backend] = lambda: backend
    try:
        yield httpx.ASGITransport(app=app)
    finally:
        app.dependency_overrides.pop(get_backend, None)


@pytest.fixture
def session():
    provider = LocalIdentityProvider({"ops@example.com": hash_password("s3cret")}, secret_key="test-secret")
    return SessionStore(provider)


def _run(coro):
    return asyncio.run(coro)


def test_list_attaches_fresh_token(proxy_transport, fake_backend, session):
    async def scenario():
        await session.sign_in("ops@example.com", "s3cret")
        async with ProductApiClient(session=session, base_url=PROXY_BASE, transport=proxy_transport) as api:
            env = await api.list(page=1, limit=10)
        return env

    env = _run(scenario())
    assert env.is_success
    auth = fake_backend.last.headers["Authorization"]
    assert auth.startswith("Bearer ")
    claims = session.provider.decode(auth.split(" ", 1)[1])
    assert claims["sub"] == "ops@example.com"


def test_signed_out_calls_go_without_token(proxy_transport, fake_backend, session):
    async def scenario():
        async with ProductApiClient(session=session, base_url=PROXY_BASE, transport=proxy_transport) as api:
            return await api.list()

    _run(scenario())
    assert "Authorization" not in fake_backend.last.headers


@pytest.mark.parametrize("search,expected", [("  lamp ", "lamp"), ("   ", None), (None, None)])
def test_list_search_parameter(proxy_transport, fake_backend, search, expected):
    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, transport=proxy_transport) as api:
            return await api.list(page=3, limit=5, search=search)

    _run(scenario())
    params = fake_backend.last.url.params
    assert params.get("search") == expected
    assert params["offset"] == "10"


def test_list_scenario_page_two(proxy_transport, fake_backend, make_product, ok_envelope):
    fake_backend.respond(200, ok_envelope(
        [make_product(i) for i in range(1, 4)],
        pagination={"page": 2, "limit": 10, "total": 23, "total_pages": 3, "search": "lamp"},
    ))

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, transport=proxy_transport) as api:
            return await api.list(page=2, limit=10, search="lamp")

    env = _run(scenario())
    assert env.is_success
    assert len(env.products()) == 3
    assert env.pagination.total == 23
    assert env.pagination.total_pages == 3


def test_get_blank_id_raises_without_request(proxy_transport, fake_backend):
    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, transport=proxy_transport) as api:
            await api.get("  ")

    with pytest.raises(ProductValidationError) as exc:
        _run(scenario())
    assert exc.value.error_code == "MISSING_PRODUCT_ID"
    assert exc.value.status_code == "400"
    assert fake_backend.requests == []


def test_get_not_found_returns_failure_envelope(proxy_transport, fake_backend):
    fake_backend.respond(404, {"message": "gone"})
    notifier = Notifier()

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, notifier=notifier, transport=proxy_transport) as api:
            return await api.get("p404")

    env = _run(scenario())
    assert env.is_success is False
    assert env.status_code == "404"
    assert env.error_code == "FETCH_PRODUCT_ERROR"
    assert env.upstream_error_code == "PRODUCT_NOT_FOUND"
    assert env.data is None
    assert [n.status for n in notifier.history] == [404]


def test_create_validation_failure_never_sends(proxy_transport, fake_backend):
    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, transport=proxy_transport) as api:
            await api.create({"product_title": "a", "product_price": 5})

    with pytest.raises(ProductValidationError) as exc:
        _run(scenario())
    assert "product_title" in exc.value.errors
    assert fake_backend.requests == []


def test_create_sends_cleaned_payload(proxy_transport, fake_backend, make_product, ok_envelope):
    fake_backend.respond(200, ok_envelope(make_product(1, product_price=20.0)))

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, transport=proxy_transport) as api:
            return await api.create({"product_title": "  Desk  Lamp ", "product_price": 19.999, "product_category": ""})

    env = _run(scenario())
    assert env.is_success
    assert env.product().product_id == "p1"
    assert json.loads(fake_backend.last.content) == {"product_title": "Desk Lamp", "product_price": 20.0}


def test_create_conflict_returns_call_specific_code(proxy_transport, fake_backend):
    fake_backend.respond(409, {"message": "exists"})

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, transport=proxy_transport) as api:
            return await api.create({"product_title": "Lamp", "product_price": 1})

    env = _run(scenario())
    assert env.error_code == "CREATE_PRODUCT_ERROR"
    assert env.status_code == "409"
    assert env.upstream_error_code == "PRODUCT_EXISTS"


def test_update_sends_id_with_partial_fields(proxy_transport, fake_backend, make_product, ok_envelope):
    fake_backend.respond(200, ok_envelope(make_product(1)))

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, transport=proxy_transport) as api:
            return await api.update("p1", {"product_price": 3.333})

    env = _run(scenario())
    assert env.is_success
    assert json.loads(fake_backend.last.content) == {"product_id": "p1", "product_price": 3.33}
    assert fake_backend.last.method == "PUT"


def test_update_server_error_notifies(proxy_transport, fake_backend):
    fake_backend.respond(500, {"message": "db down"})
    notifier = Notifier()

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, notifier=notifier, transport=proxy_transport) as api:
            return await api.update("p1", {"product_title": "Lamp"})

    env = _run(scenario())
    assert env.error_code == "UPDATE_PRODUCT_ERROR"
    assert env.status_code == "500"
    assert notifier.history[-1].status == 500
    assert notifier.history[-1].level == "error"


def test_expired_session_is_announced(proxy_transport, fake_backend):
    fake_backend.respond(401, {"message": "token expired"})
    notifier = Notifier()
    seen = []
    notifier.add_handler(seen.append)

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, notifier=notifier, transport=proxy_transport) as api:
            return await api.list()

    env = _run(scenario())
    assert env.error_code == "FETCH_PRODUCTS_ERROR"
    assert env.data == []
    assert env.message == "token expired"
    assert seen[0].status == 401
    assert "session has expired" in seen[0].message


def test_client_side_timeout(fake_backend):
    def _raise(request):
        raise httpx.ReadTimeout("slow", request=request)

    notifier = Notifier()

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, notifier=notifier, transport=httpx.MockTransport(_raise)) as api:
            return await api.list()

    env = _run(scenario())
    assert env.status_code == "408"
    assert env.error_code == "FETCH_PRODUCTS_ERROR"
    assert env.data == []
    assert notifier.history[-1].message == TIMEOUT_MESSAGE


def test_client_side_network_error():
    def _raise(request):
        raise httpx.ConnectError("refused", request=request)

    notifier = Notifier()

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, notifier=notifier, transport=httpx.MockTransport(_raise)) as api:
            return await api.get("p1")

    env = _run(scenario())
    assert env.status_code == "503"
    assert env.error_code == "FETCH_PRODUCT_ERROR"
    assert env.is_success is False
    assert notifier.history[-1].message == NETWORK_MESSAGE


def test_non_json_success_body_is_a_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))

    async def scenario():
        async with ProductApiClient(base_url=PROXY_BASE, transport=transport) as api:
            return await api.list()

    env = _run(scenario())
    assert env.is_success is False
    assert env.error_code == "FETCH_PRODUCTS_ERROR"
