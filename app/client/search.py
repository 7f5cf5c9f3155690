# app/client/search.py
"""
Debounced search and pagination for the product list.

Phases:
    idle     -> keystroke             -> pending (timer started)
    pending  -> keystroke             -> pending (timer restarted)
    pending  -> quiet for `delay`     -> idle, page reset to 1, fetch
                                        (no-op if the term is unchanged)
    idle     -> page change           -> idle, fetch with the committed search

Every fetch gets a generation number; only the newest fetch may write its
result into the visible state, so a slow superseded request can never
overwrite a newer one.

Usage:
    coordinator = SearchCoordinator(api.list, notifier=notifier)
    await coordinator.load()
    coordinator.set_search("lamp")      # fetch fires 300ms after the last keystroke
    await coordinator.set_page(2)
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Set
import asyncio
import logging
import math

from app.api.schemas.product import Envelope, Product
from app.client.notifications import Notifier
from app.client.stats import DashboardStats, calculate_stats
from app.config import settings

logger = logging.getLogger(__name__)

IDLE = "idle"
PENDING = "pending"

# (page, limit, search) -> envelope; ProductApiClient.list fits this shape
FetchFn = Callable[[int, int, str], Awaitable[Envelope]]


@dataclass
class SearchState:
    current_page: int = 1
    search_term: str = ""
    debounced_search_term: str = ""
    total: int = 0
    total_pages: int = 1
    limit: int = 10
    loading: bool = False
    products: List[Product] = field(default_factory=list)


class SearchCoordinator:
    def __init__(
        self,
        fetch: FetchFn,
        limit: Optional[int] = None,
        delay: Optional[float] = None,
        notifier: Optional[Notifier] = None,
    ):
        self._fetch = fetch
        self.delay = settings.SEARCH_DEBOUNCE_SECONDS if delay is None else delay
        self.notifier = notifier or Notifier()
        self.state = SearchState(limit=limit or settings.DEFAULT_PAGE_SIZE)
        self._timer: Optional[asyncio.TimerHandle] = None
        self._generation = 0
        self._tasks: Set[asyncio.Task] = set()

    @property
    def phase(self) -> str:
        return PENDING if self._timer is not None else IDLE

    @property
    def stats(self) -> DashboardStats:
        return calculate_stats(self.state.products, server_total=self.state.total)

    def set_search(self, text: str) -> None:
        """Record a keystroke and (re)start the debounce timer."""
        self.state.search_term = text or ""
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._commit_search)

    def _commit_search(self) -> None:
        self._timer = None
        if self.state.search_term == self.state.debounced_search_term:
            # settled back on the committed term; nothing to refetch
            return
        self.state.debounced_search_term = self.state.search_term
        # a new search always starts from the first page
        self.state.current_page = 1
        self._start_fetch(1, self.state.debounced_search_term)

    def set_page(self, page: int) -> asyncio.Task:
        """Fetch `page` with the committed search; the search term is kept."""
        page = max(1, int(page))
        return self._start_fetch(page, self.state.debounced_search_term)

    def refresh(self) -> asyncio.Task:
        """Re-fetch the current page, e.g. after a create or update."""
        return self._start_fetch(self.state.current_page, self.state.debounced_search_term)

    def load(self) -> asyncio.Task:
        return self.refresh()

    def _start_fetch(self, page: int, search: str) -> asyncio.Task:
        self._generation += 1
        generation = self._generation
        self.state.loading = True
        task = asyncio.get_running_loop().create_task(self._run_fetch(generation, page, search))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_fetch(self, generation: int, page: int, search: str) -> bool:
        try:
            envelope = await self._fetch(page, self.state.limit, search)
        except Exception as exc:
            logger.exception("product fetch failed")
            if generation == self._generation:
                self.state.loading = False
                self.notifier.error(f"Error fetching products: {exc}")
            return False

        if generation != self._generation:
            logger.debug("discarding superseded fetch %s (latest %s)", generation, self._generation)
            return False

        self.state.loading = False
        if not envelope.is_success:
            # keep whatever is on screen
            self.notifier.error(envelope.message or "Failed to fetch products")
            return False

        try:
            products = envelope.products()
        except ValueError as exc:
            logger.warning("malformed product in list response: %s", exc)
            self.notifier.error("Received malformed product data")
            return False
        pagination = envelope.pagination
        total = pagination.total if pagination else len(products)
        self.state.products = products
        self.state.total = total
        if pagination and pagination.total_pages:
            self.state.total_pages = pagination.total_pages
        else:
            self.state.total_pages = max(1, math.ceil(total / self.state.limit))
        self.state.current_page = page
        return True

    async def wait_idle(self) -> None:
        """Wait for every fetch started so far (test and shutdown helper)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
