"""Per-user application state behind the HTTP layer.

The controller keeps the last authoritative snapshot of one user's
warehouses, products and activities. Mutations go straight to the services
and the snapshot is reloaded afterwards whether the write succeeded or not,
so callers never read a tentative state.
"""

from datetime import datetime

from sqlalchemy.orm import Session

from sellerpro.config import get_settings
from sellerpro.schemas.product import ProductDraft
from sellerpro.services import product_service, stats_service, warehouse_service
from sellerpro.services.widget_service import publish_widget_data


class InventoryController:
    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id
        self.warehouses = []
        self.products = []
        self.activities = []

    def refresh(self) -> "InventoryController":
        self.warehouses = warehouse_service.ensure_seeded(self.db, self.user_id)
        self.products, self.activities = stats_service.load_snapshot(self.db, self.user_id)
        return self

    def _publish_widget(self) -> None:
        products, activities = stats_service.load_snapshot(self.db, self.user_id)
        publish_widget_data(self.db, self.user_id, products, activities)

    # ------------------------------
    # Mutations
    # ------------------------------

    def add_or_update_product(
        self,
        draft: ProductDraft,
        product_id: int | None = None,
        confirm_merge: bool = False,
    ):
        try:
            result = product_service.upsert_product(
                self.db,
                self.user_id,
                draft,
                product_id=product_id,
                confirm_merge=confirm_merge,
            )
            self._publish_widget()
            return result
        finally:
            self.refresh()

    def delete_product(self, product_id: int) -> None:
        try:
            product_service.delete_product(self.db, self.user_id, product_id)
            self._publish_widget()
        finally:
            self.refresh()

    def outbound_product(
        self,
        product_id: int,
        selling_price: float | None = None,
        platform: str | None = None,
    ):
        try:
            product = product_service.outbound_product(
                self.db,
                self.user_id,
                product_id,
                selling_price=selling_price,
                platform=platform,
            )
            self._publish_widget()
            return product
        finally:
            self.refresh()

    def rename_warehouse(self, warehouse_id: int, new_name: str, old_name: str | None = None):
        try:
            return warehouse_service.rename(
                self.db, self.user_id, warehouse_id, new_name, old_name=old_name
            )
        finally:
            self.refresh()

    def set_default_warehouse(self, warehouse_id: int):
        try:
            return warehouse_service.set_default(self.db, self.user_id, warehouse_id)
        finally:
            self.refresh()

    # ------------------------------
    # Read models
    # ------------------------------

    def dashboard(self, now: datetime | None = None) -> dict:
        limit = get_settings().RECENT_ACTIVITY_LIMIT
        return {
            "pending_count": stats_service.pending_count(self.activities),
            "today_sales": stats_service.today_sales(self.activities, now),
            "recent_activities": self.activities[:limit],
        }

    def statistics(self, now: datetime | None = None) -> dict:
        return stats_service.statistics(self.products, self.activities, now)

    def inventory_overview(self) -> dict:
        return stats_service.inventory_overview(self.products)

    def warehouse_totals(self, name: str) -> dict:
        return {
            "warehouse": name,
            "total_stock": stats_service.total_stock_for_warehouse(self.products, name),
            "total_value": stats_service.total_value_for_warehouse(self.products, name),
        }
