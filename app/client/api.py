# app/client/api.py
"""
Client used by dashboard code to reach the proxy routes.

- attaches the freshest bearer token from the session store to every call
- validates and cleans create/update payloads locally; bad input raises
  ProductValidationError before anything is sent
- remote failures come back as failed Envelopes with a call-specific
  error code, never as raw httpx exceptions
- a response hook turns 401/403/404/429/5xx into user notifications,
  independent of the per-call handling

Usage:
    async with ProductApiClient(session=session, notifier=notifier) as api:
        envelope = await api.list(page=2, limit=10, search="lamp")
        if envelope.is_success:
            rows = envelope.products()
"""
from typing import Any, Dict, Optional
import logging

import httpx

from app.api.schemas.product import Envelope
from app.client.notifications import Notifier, notification_for_status, notification_for_transport_error
from app.client.session import SessionStore
from app.client.validation import ProductValidationError, prepare_create, prepare_update
from app.config import settings
from app.core.envelope import (
    CREATE_PRODUCT_ERROR,
    FETCH_PRODUCT_ERROR,
    FETCH_PRODUCTS_ERROR,
    MISSING_PRODUCT_ID,
    UPDATE_PRODUCT_ERROR,
    backend_message,
    failure,
)

logger = logging.getLogger(__name__)

# status reported when no HTTP response was received at all
NETWORK_ERROR_STATUS = 503
TIMEOUT_STATUS = 408


class ProductApiClient:
    def __init__(
        self,
        session: Optional[SessionStore] = None,
        base_url: Optional[str] = None,
        notifier: Optional[Notifier] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.notifier = notifier or Notifier()
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.PROXY_BASE_URL).rstrip("/"),
            timeout=timeout if timeout is not None else settings.WRITE_TIMEOUT,
            headers={"Content-Type": "application/json"},
            transport=transport,
            event_hooks={"response": [self._intercept_response]},
        )

    async def __aenter__(self) -> "ProductApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _intercept_response(self, response: httpx.Response) -> None:
        note = notification_for_status(response.status_code)
        if note is not None:
            self.notifier.emit(note)

    async def _auth_headers(self) -> Dict[str, str]:
        if self.session is None:
            return {}
        try:
            token = await self.session.get_token()
        except Exception:
            # no usable token: let the proxy/backend answer 401
            logger.warning("could not resolve identity token", exc_info=True)
            return {}
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _send(
        self,
        method: str,
        path: str,
        error_code: str,
        fallback_message: str,
        error_data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Envelope:
        headers = await self._auth_headers()
        try:
            res = await self._client.request(method, path, params=params, json=json, headers=headers)
            res.raise_for_status()
            return Envelope.model_validate(res.json())
        except httpx.HTTPStatusError as exc:
            try:
                body = exc.response.json()
            except ValueError:
                body = None
            env = failure(exc.response.status_code, error_code, backend_message(body, fallback_message), error_data)
            if isinstance(body, dict) and body.get("error_code"):
                env["upstream_error_code"] = body["error_code"]
            return Envelope.model_validate(env)
        except httpx.TimeoutException as exc:
            self.notifier.emit(notification_for_transport_error(exc))
            return Envelope.model_validate(failure(TIMEOUT_STATUS, error_code, "Request timed out", error_data))
        except httpx.RequestError as exc:
            self.notifier.emit(notification_for_transport_error(exc))
            logger.warning("%s %s failed: %s", method, path, exc)
            return Envelope.model_validate(failure(NETWORK_ERROR_STATUS, error_code, fallback_message, error_data))
        except ValueError as exc:
            # 2xx with a body that is not a JSON envelope
            logger.warning("%s %s returned an unreadable body: %s", method, path, exc)
            return Envelope.model_validate(failure(500, error_code, fallback_message, error_data))

    async def list(self, page: int = 1, limit: Optional[int] = None, search: Optional[str] = None) -> Envelope:
        params: Dict[str, Any] = {"page": page, "limit": limit or settings.DEFAULT_PAGE_SIZE}
        term = (search or "").strip()
        if term:
            params["search"] = term
        return await self._send(
            "GET", "/products", FETCH_PRODUCTS_ERROR, "Failed to fetch products", error_data=[], params=params
        )

    async def get(self, product_id: str) -> Envelope:
        pid = str(product_id or "").strip()
        if not pid:
            raise ProductValidationError("Product ID is required", {"product_id": "required"}, MISSING_PRODUCT_ID)
        return await self._send(
            "GET", "/product", FETCH_PRODUCT_ERROR, "Failed to fetch product", params={"product_id": pid}
        )

    async def create(self, data: Dict[str, Any]) -> Envelope:
        payload = prepare_create(data)
        return await self._send("POST", "/product", CREATE_PRODUCT_ERROR, "Failed to create product", json=payload)

    async def update(self, product_id: str, data: Dict[str, Any]) -> Envelope:
        payload = prepare_update(product_id, data)
        return await self._send("PUT", "/product", UPDATE_PRODUCT_ERROR, "Failed to update product", json=payload)
