# app/api/routes/products.py
"""
Proxy routes in front of the external product backend.

Each handler reshapes the browser request, forwards it with the caller's
Authorization header and maps every outcome onto the response envelope.
Nothing raised by the backend call leaves these handlers.
"""
import logging
import math
from typing import Any, Dict, Optional, Tuple

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from app.api.deps import get_authorization, get_backend
from app.config import settings
from app.core.envelope import (
    EXTERNAL_API_ERROR,
    INTERNAL_SERVER_ERROR,
    INVALID_PRICE,
    MISSING_PRODUCT_ID,
    PRODUCT_EXISTS,
    PRODUCT_NOT_FOUND,
    REQUEST_TIMEOUT,
    VALIDATION_ERROR,
    backend_message,
    failure,
    from_backend_body,
    status_of,
)
from app.services.backend import ProductBackend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["products"])

# backend status -> (error code, default message)
StatusMap = Dict[int, Tuple[str, str]]

GET_STATUS_MAP: StatusMap = {
    404: (PRODUCT_NOT_FOUND, "Product not found"),
}
CREATE_STATUS_MAP: StatusMap = {
    400: (VALIDATION_ERROR, "Validation error"),
    409: (PRODUCT_EXISTS, "Product already exists"),
}
UPDATE_STATUS_MAP: StatusMap = {
    400: (VALIDATION_ERROR, "Validation error"),
    404: (PRODUCT_NOT_FOUND, "Product not found"),
}


def _respond(envelope: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_of(envelope), content=envelope)


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _translate_error(
    exc: Exception,
    operation: str,
    fallback_message: str,
    status_map: Optional[StatusMap] = None,
    any_http_error: Optional[str] = None,
    data: Any = None,
) -> Dict[str, Any]:
    """
    Map an exception from the backend call onto a failed envelope.

    - timeouts become 408 REQUEST_TIMEOUT
    - backend HTTP errors listed in `status_map` keep the backend status
    - with `any_http_error` set, every other backend HTTP error keeps its
      status and is tagged with that code
    - everything else is a 500 INTERNAL_SERVER_ERROR
    """
    if isinstance(exc, httpx.TimeoutException):
        logger.warning("%s timed out: %s", operation, exc)
        return failure(408, REQUEST_TIMEOUT, "Request to product service timed out", data)

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        body = _safe_json(exc.response)
        logger.warning("%s failed with backend status %s", operation, status)
        mapped = (status_map or {}).get(status)
        if mapped:
            code, default_message = mapped
            return failure(status, code, backend_message(body, default_message), data)
        if any_http_error:
            return failure(status, any_http_error, backend_message(body, fallback_message), data)
        return failure(500, INTERNAL_SERVER_ERROR, fallback_message, data)

    logger.exception("%s failed: %s", operation, exc)
    return failure(500, INTERNAL_SERVER_ERROR, fallback_message, data)


def _positive_int(raw: Optional[str], default: int, maximum: Optional[int] = None) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    if value < 1:
        return default
    if maximum is not None and value > maximum:
        return maximum
    return value


def _is_valid_price(value: Any) -> bool:
    # bool is an int subclass; "true" is not a price
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value) and value >= 0
    except OverflowError:
        # integer literal too large for a float
        return False


async def _json_body(request: Request) -> Optional[Dict[str, Any]]:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _query_params(page: int, limit: int, search: str) -> Dict[str, str]:
    params = {
        "page": str(page),
        "limit": str(limit),
        "offset": str((page - 1) * limit),
    }
    if search:
        params["search"] = search
    return params


@router.get("/products")
async def list_products(
    page: Optional[str] = Query("1"),
    limit: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    authorization: Optional[str] = Depends(get_authorization),
    backend: ProductBackend = Depends(get_backend),
):
    """
    List products, forwarding page/limit/offset/search to the backend.
    Failures always carry `data: []` so list rendering stays safe.
    """
    page_no = _positive_int(page, 1)
    page_size = _positive_int(limit, settings.DEFAULT_PAGE_SIZE, maximum=settings.MAX_PAGE_SIZE)
    term = (search or "").strip()
    params = _query_params(page_no, page_size, term)

    try:
        body = await backend.list_products(params, authorization)
    except Exception as exc:
        return _respond(
            _translate_error(exc, "list products", "Failed to fetch products", any_http_error=EXTERNAL_API_ERROR, data=[])
        )
    return from_backend_body(body)


@router.get("/product")
async def get_product(
    product_id: Optional[str] = Query(None),
    productId: Optional[str] = Query(None, include_in_schema=False),
    authorization: Optional[str] = Depends(get_authorization),
    backend: ProductBackend = Depends(get_backend),
):
    pid = (product_id or productId or "").strip()
    if not pid:
        return _respond(failure(400, MISSING_PRODUCT_ID, "Product ID is required"))

    try:
        body = await backend.get_product(pid, authorization)
    except Exception as exc:
        return _respond(_translate_error(exc, "get product", "Failed to fetch product", status_map=GET_STATUS_MAP))
    return from_backend_body(body)


@router.post("/product")
async def create_product(
    request: Request,
    authorization: Optional[str] = Depends(get_authorization),
    backend: ProductBackend = Depends(get_backend),
):
    body = await _json_body(request)
    if body is None:
        return _respond(failure(400, VALIDATION_ERROR, "Request body must be a JSON object"))

    title = body.get("product_title")
    price = body.get("product_price")
    if not isinstance(title, str) or not title.strip() or price is None:
        return _respond(failure(400, VALIDATION_ERROR, "Product title and price are required"))
    if not _is_valid_price(price):
        return _respond(failure(400, INVALID_PRICE, "Price must be a non-negative number"))

    try:
        result = await backend.create_product(body, authorization)
    except Exception as exc:
        return _respond(
            _translate_error(exc, "create product", "Failed to create product", status_map=CREATE_STATUS_MAP)
        )
    return from_backend_body(result)


@router.put("/product")
async def update_product(
    request: Request,
    authorization: Optional[str] = Depends(get_authorization),
    backend: ProductBackend = Depends(get_backend),
):
    body = await _json_body(request)
    if body is None:
        return _respond(failure(400, VALIDATION_ERROR, "Request body must be a JSON object"))

    pid = body.get("product_id")
    if pid is None or not str(pid).strip():
        return _respond(failure(400, MISSING_PRODUCT_ID, "Product ID is required for update"))

    price = body.get("product_price")
    if price is not None and not _is_valid_price(price):
        return _respond(failure(400, INVALID_PRICE, "Price must be a non-negative number"))

    try:
        result = await backend.update_product(body, authorization)
    except Exception as exc:
        return _respond(
            _translate_error(exc, "update product", "Failed to update product", status_map=UPDATE_STATUS_MAP)
        )
    return from_backend_body(result)
