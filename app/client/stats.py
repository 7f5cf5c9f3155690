# app/client/stats.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from app.api.schemas.product import Product, UNCATEGORIZED

RECENT_DAYS = 7
TOP_CATEGORIES = 5


@dataclass
class CategoryStats:
    category: str
    count: int = 0
    total_value: float = 0.0

    @property
    def average_price(self) -> float:
        return self.total_value / self.count if self.count else 0.0


@dataclass
class DashboardStats:
    total_products: int = 0
    total_value: float = 0.0
    average_price: float = 0.0
    categories: int = 0
    recently_added: int = 0
    popular_categories: List[CategoryStats] = field(default_factory=list)
    most_expensive: Optional[Product] = None
    cheapest: Optional[Product] = None


def _parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def calculate_stats(
    products: Sequence[Product],
    server_total: Optional[int] = None,
    now: Optional[datetime] = None,
) -> DashboardStats:
    """
    Derive dashboard figures from the currently loaded page.

    `total_products` is the server-reported total when given, otherwise the
    page length. Prices, categories and the rest only ever see this page.
    `categories` counts distinct non-empty category strings (case-sensitive);
    the per-category breakdown buckets missing categories as "Uncategorized".
    """
    if not products:
        return DashboardStats(total_products=server_total or 0)

    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=RECENT_DAYS)

    total_value = sum(p.product_price for p in products)
    distinct = {p.product_category for p in products if p.product_category}

    buckets: Dict[str, CategoryStats] = {}
    recent = 0
    for p in products:
        label = p.category_label
        bucket = buckets.setdefault(label, CategoryStats(label))
        bucket.count += 1
        bucket.total_value += p.product_price
        created = _parse_timestamp(p.created_timestamp)
        if created is not None and created >= cutoff:
            recent += 1

    # stable sort keeps first-seen order among equal counts
    popular = sorted(buckets.values(), key=lambda c: c.count, reverse=True)[:TOP_CATEGORIES]
    by_price = sorted(products, key=lambda p: p.product_price, reverse=True)

    return DashboardStats(
        total_products=server_total if server_total is not None else len(products),
        total_value=total_value,
        average_price=total_value / len(products),
        categories=len(distinct),
        recently_added=recent,
        popular_categories=popular,
        most_expensive=by_price[0],
        cheapest=by_price[-1],
    )
