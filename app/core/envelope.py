from __future__ import annotations
from typing import Any, Dict, Optional

# error codes shared by the proxy routes and the client wrapper
VALIDATION_ERROR = "VALIDATION_ERROR"
MISSING_PRODUCT_ID = "MISSING_PRODUCT_ID"
INVALID_PRICE = "INVALID_PRICE"
REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"
PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
PRODUCT_EXISTS = "PRODUCT_EXISTS"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

FETCH_PRODUCTS_ERROR = "FETCH_PRODUCTS_ERROR"
FETCH_PRODUCT_ERROR = "FETCH_PRODUCT_ERROR"
CREATE_PRODUCT_ERROR = "CREATE_PRODUCT_ERROR"
UPDATE_PRODUCT_ERROR = "UPDATE_PRODUCT_ERROR"

ENVELOPE_KEYS = ("status_code", "is_success", "error_code", "data")

Envelope = Dict[str, Any]


def success(data: Any, pagination: Optional[Dict[str, Any]] = None, status: int = 200) -> Envelope:
    body: Envelope = {
        "status_code": str(status),
        "is_success": True,
        "error_code": None,
        "data": data,
    }
    if pagination is not None:
        body["pagination"] = pagination
    return body


def failure(status: int, error_code: str, message: str, data: Any = None) -> Envelope:
    """
    Build a failed envelope. `error_code` must be a non-empty tag so that
    `is_success == (error_code is None)` always holds.
    """
    if not error_code:
        raise ValueError("failure envelope requires an error_code")
    return {
        "status_code": str(status),
        "is_success": False,
        "error_code": error_code,
        "data": data,
        "message": message,
    }


def is_envelope(body: Any) -> bool:
    return isinstance(body, dict) and all(k in body for k in ENVELOPE_KEYS)


def from_backend_body(body: Any, status: int = 200) -> Envelope:
    """
    Normalize a 2xx backend body. Bodies already shaped like an envelope are
    returned untouched; anything else is wrapped as a success payload.
    """
    if is_envelope(body):
        return body
    return success(body, status=status)


def backend_message(body: Any, default: str) -> str:
    """Pull a human readable message out of a backend error body if there is one."""
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            val = body.get(key)
            if isinstance(val, str) and val.strip():
                return val
    return default


def status_of(envelope: Envelope) -> int:
    try:
        return int(envelope.get("status_code") or 500)
    except (TypeError, ValueError):
        return 500
