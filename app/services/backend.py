# app/services/backend.py
"""
Thin async client for the external product backend.

Every call opens its own httpx.AsyncClient so handlers share no state. Errors
are not translated here: httpx.TimeoutException, httpx.HTTPStatusError and
httpx.RequestError propagate to the caller, which owns the mapping onto the
response envelope.

Usage:
    backend = ProductBackend(settings.backend_base_url)
    body = await backend.list_products({"page": "1", "limit": "10", "offset": "0"}, auth_header)
"""
from typing import Any, Dict, Optional
import logging

import httpx

from app.config import settings as default_settings, Settings

logger = logging.getLogger(__name__)


class ProductBackend:
    def __init__(
        self,
        base_url: str,
        read_timeout: float = 10.0,
        write_timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        # tests plug an httpx.MockTransport in here
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "ProductBackend":
        return cls(
            settings.backend_base_url,
            read_timeout=settings.READ_TIMEOUT,
            write_timeout=settings.WRITE_TIMEOUT,
        )

    @staticmethod
    def _headers(authorization: Optional[str]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        # forwarded exactly as the browser sent it
        if authorization:
            headers["Authorization"] = authorization
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        authorization: Optional[str],
        timeout: float,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=self.transport) as client:
            res = await client.request(method, path, params=params, json=json, headers=self._headers(authorization))
            logger.debug("%s %s -> %s", method, path, res.status_code)
            res.raise_for_status()
            if not res.content:
                return None
            return res.json()

    async def list_products(self, params: Dict[str, str], authorization: Optional[str] = None) -> Any:
        return await self._request("GET", "/products", authorization, self.read_timeout, params=params)

    async def get_product(self, product_id: str, authorization: Optional[str] = None) -> Any:
        return await self._request(
            "GET", "/product", authorization, self.read_timeout, params={"product_id": product_id}
        )

    async def create_product(self, body: Dict[str, Any], authorization: Optional[str] = None) -> Any:
        return await self._request("POST", "/product", authorization, self.write_timeout, json=body)

    async def update_product(self, body: Dict[str, Any], authorization: Optional[str] = None) -> Any:
        return await self._request("PUT", "/product", authorization, self.write_timeout, json=body)
