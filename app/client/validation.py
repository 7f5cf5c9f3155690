# app/client/validation.py
"""
Client-side guard rails for product payloads.

clean_product_data() trims strings, collapses runs of whitespace in titles,
rounds prices to cents and drops empty optional fields. validate_product_data()
runs the cleaned payload through the pydantic create/update schemas and
raises ProductValidationError with per-field messages. Cleaning is idempotent:
cleaning an already-cleaned payload returns an equal payload.

Usage:
    payload = prepare_create(form_data)        # raises ProductValidationError
    payload = prepare_update(product_id, form_data)
"""
from __future__ import annotations
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional
import re

from pydantic import ValidationError

from app.api.schemas.product import ProductCreate, ProductUpdate
from app.core.envelope import INVALID_PRICE, MISSING_PRODUCT_ID, VALIDATION_ERROR

EDITABLE_FIELDS = (
    "product_title",
    "product_price",
    "product_description",
    "product_category",
    "product_image",
)
OPTIONAL_TEXT_FIELDS = ("product_description", "product_category", "product_image")

_CENT = Decimal("0.01")
_WS = re.compile(r"\s+")


class ProductValidationError(ValueError):
    """
    Raised for input that fails local checks. Never raised for remote failures,
    which come back as failed envelopes instead.
    """

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None, error_code: str = VALIDATION_ERROR):
        super().__init__(message)
        self.message = message
        self.errors: Dict[str, str] = dict(errors or {})
        self.error_code = error_code
        self.status_code = "400"


def round_price(value: Any) -> Any:
    """
    Round a numeric price to 2 places (half up). Numeric strings are converted;
    anything else is returned unchanged so validation can reject it.
    """
    if isinstance(value, bool) or value is None:
        return value
    if not isinstance(value, (int, float, Decimal, str)):
        return value
    try:
        dec = Decimal(str(value).strip())
    except InvalidOperation:
        return value
    if not dec.is_finite():
        return value
    return float(dec.quantize(_CENT, rounding=ROUND_HALF_UP))


def clean_title(title: Any) -> Any:
    if not isinstance(title, str):
        return title
    return _WS.sub(" ", title.strip())


def clean_product_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a cleaned copy of `data` limited to the editable product fields."""
    cleaned: Dict[str, Any] = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if value is None:
            continue
        if key == "product_title":
            cleaned[key] = clean_title(value)
        elif key == "product_price":
            cleaned[key] = round_price(value)
        elif isinstance(value, str):
            value = value.strip()
            # empty optionals are dropped rather than sent as ""
            if value:
                cleaned[key] = value
        else:
            cleaned[key] = value
    return cleaned


def _field_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("payload",)
        errors.setdefault(str(loc[0]), err.get("msg", "Invalid value"))
    return errors


def validate_product_data(data: Dict[str, Any], partial: bool = False) -> None:
    """
    Validate an already cleaned payload. `partial` selects update semantics
    (every field optional). Raises ProductValidationError.
    """
    errors: Dict[str, str] = {}

    price = data.get("product_price")
    if "product_price" in data and (isinstance(price, bool) or not isinstance(price, (int, float))):
        errors["product_price"] = "Price must be a number"

    schema = ProductUpdate if partial else ProductCreate
    try:
        schema.model_validate({k: v for k, v in data.items() if k not in errors})
    except ValidationError as exc:
        for key, msg in _field_errors(exc).items():
            errors.setdefault(key, msg)

    if errors:
        code = INVALID_PRICE if set(errors) == {"product_price"} else VALIDATION_ERROR
        first = next(iter(errors))
        raise ProductValidationError(f"{first}: {errors[first]}", errors=errors, error_code=code)


def prepare_create(data: Dict[str, Any]) -> Dict[str, Any]:
    payload = clean_product_data(data)
    validate_product_data(payload, partial=False)
    return payload


def prepare_update(product_id: Any, data: Dict[str, Any]) -> Dict[str, Any]:
    pid = str(product_id or "").strip()
    if not pid:
        raise ProductValidationError("Product ID is required", {"product_id": "required"}, MISSING_PRODUCT_ID)
    payload = clean_product_data(data)
    validate_product_data(payload, partial=True)
    return {"product_id": pid, **payload}
