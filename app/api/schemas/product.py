# app/api/schemas/product.py
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

TITLE_MIN_LENGTH = 2
TITLE_MAX_LENGTH = 200
PRICE_MAX = 999999.99
DESCRIPTION_MAX_LENGTH = 1000
CATEGORY_MAX_LENGTH = 100
IMAGE_MAX_LENGTH = 500

UNCATEGORIZED = "Uncategorized"

_http_url = TypeAdapter(HttpUrl)


def _check_image_url(value: Optional[str]) -> Optional[str]:
    """Reject anything that is not an absolute http(s) URL; the string itself is kept."""
    if value is None:
        return value
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("Image must be a valid URL")
    return value


class Product(BaseModel):
    """
    A product as the external backend returns it. Extra keys sent by the
    backend are kept so nothing is lost when the record is passed through.
    """
    model_config = ConfigDict(extra="allow")

    product_id: str
    product_title: str
    product_price: float = 0.0
    product_description: Optional[str] = None
    product_category: Optional[str] = None
    product_image: Optional[str] = None
    created_timestamp: Optional[str] = None
    updated_timestamp: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def category_label(self) -> str:
        return self.product_category or UNCATEGORIZED


class ProductCreate(BaseModel):
    product_title: str = Field(..., min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    product_price: float = Field(..., ge=0, le=PRICE_MAX)
    product_description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    product_category: Optional[str] = Field(None, max_length=CATEGORY_MAX_LENGTH)
    product_image: Optional[str] = Field(None, max_length=IMAGE_MAX_LENGTH)

    @field_validator("product_image")
    @classmethod
    def _image_is_url(cls, value: Optional[str]) -> Optional[str]:
        return _check_image_url(value)


class ProductUpdate(BaseModel):
    product_title: Optional[str] = Field(None, min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    product_price: Optional[float] = Field(None, ge=0, le=PRICE_MAX)
    product_description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    product_category: Optional[str] = Field(None, max_length=CATEGORY_MAX_LENGTH)
    product_image: Optional[str] = Field(None, max_length=IMAGE_MAX_LENGTH)

    @field_validator("product_image")
    @classmethod
    def _image_is_url(cls, value: Optional[str]) -> Optional[str]:
        return _check_image_url(value)


class Pagination(BaseModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 0
    search: Optional[str] = None


class Envelope(BaseModel):
    """Uniform wrapper around every proxied call."""
    model_config = ConfigDict(extra="allow")

    status_code: str
    is_success: bool
    error_code: Optional[str] = None
    message: Optional[str] = None
    data: Union[List[Dict[str, Any]], Dict[str, Any], None] = None
    pagination: Optional[Pagination] = None

    @field_validator("status_code", mode="before")
    @classmethod
    def _status_as_text(cls, value: Any) -> Any:
        # some backends send the status as a number
        return str(value) if isinstance(value, int) else value

    def products(self) -> List[Product]:
        """Return `data` parsed as a list of products (empty for non-list payloads)."""
        if not isinstance(self.data, list):
            return []
        return [Product.model_validate(item) for item in self.data if isinstance(item, dict)]

    def product(self) -> Optional[Product]:
        if not isinstance(self.data, dict):
            return None
        return Product.model_validate(self.data)
