# app/client/dashboard.py
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from app.api.schemas.product import Envelope
from app.client.api import ProductApiClient
from app.client.export import products_to_csv
from app.client.notifications import Notifier
from app.client.search import SearchCoordinator
from app.client.session import SessionStore
from app.client.stats import DashboardStats
from app.client.validation import ProductValidationError


@dataclass
class SaveResult:
    ok: bool
    envelope: Optional[Envelope] = None
    # field name -> message, for errors caught before sending
    field_errors: Dict[str, str] = field(default_factory=dict)


class Dashboard:
    """
    Glue between the API client, the search coordinator and the session:
    what the product page does on load, on submit of the create/edit form,
    on logout and on export.
    """

    def __init__(self, api: ProductApiClient, session: Optional[SessionStore] = None,
                 limit: Optional[int] = None, delay: Optional[float] = None):
        self.api = api
        self.session = session
        self.notifier: Notifier = api.notifier
        self.search = SearchCoordinator(api.list, limit=limit, delay=delay, notifier=self.notifier)

    @property
    def stats(self) -> DashboardStats:
        return self.search.stats

    async def load(self) -> bool:
        return await self.search.load()

    async def save_product(self, data: Dict[str, Any], product_id: Optional[str] = None) -> SaveResult:
        """
        Create (no product_id) or update a product. Local validation errors are
        returned per field; remote failures produce a notification and leave the
        list untouched. A success refreshes the current page.
        """
        try:
            if product_id is None:
                envelope = await self.api.create(data)
            else:
                envelope = await self.api.update(product_id, data)
        except ProductValidationError as exc:
            if not exc.errors:
                self.notifier.error(exc.message)
            return SaveResult(ok=False, field_errors=exc.errors)

        if not envelope.is_success:
            self.notifier.error(envelope.message or "Failed to save product")
            return SaveResult(ok=False, envelope=envelope)

        self.notifier.success("Product created successfully!" if product_id is None else "Product updated successfully!")
        await self.search.refresh()
        return SaveResult(ok=True, envelope=envelope)

    async def logout(self) -> None:
        if self.session is not None:
            await self.session.sign_out()
        self.search.close()

    def export_csv(self, path: Optional[str] = None) -> str:
        return products_to_csv(self.search.state.products, path)
