# app/client/export.py
from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

from app.api.schemas.product import Product

CSV_COLUMNS = [
    "Product ID",
    "Title",
    "Price",
    "Description",
    "Category",
    "Image URL",
    "Created",
    "Updated",
]


def format_currency(amount: float, symbol: str = "$") -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_date(raw: Optional[str]) -> str:
    """Short date such as 'Oct 19, 2026'. Unparseable input is returned as-is."""
    if not raw:
        return ""
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return raw
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def products_frame(products: Sequence[Product]) -> pd.DataFrame:
    rows = [
        {
            "Product ID": p.product_id,
            "Title": p.product_title,
            "Price": p.product_price,
            "Description": p.product_description or "",
            "Category": p.product_category or "",
            "Image URL": p.product_image or "",
            "Created": format_date(p.created_timestamp),
            "Updated": format_date(p.updated_timestamp),
        }
        for p in products
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def products_to_csv(products: Sequence[Product], path: Optional[str] = None) -> str:
    """
    Export the loaded page as CSV. Returns the CSV text and also writes it to
    `path` when one is given. Raises ValueError for an empty list.
    """
    if not products:
        raise ValueError("No data to export")
    text = products_frame(products).to_csv(index=False)
    if path:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
    return text
