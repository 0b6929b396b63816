import os
import tempfile
import unittest
from unittest.mock import patch

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from sellerpro.core.exceptions import (
    InsufficientStockError,
    MergeConfirmationRequired,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from sellerpro.database.base import Base
from sellerpro.database.engine import build_engine
from sellerpro.database.session import make_session_factory
from sellerpro.models.activity import Activity
from sellerpro.models.product import Product
from sellerpro.schemas.product import ProductDraft
from sellerpro.services.product_service import (
    delete_product,
    get_product,
    list_products,
    merge_weighted_cost,
    outbound_product,
    upsert_product,
)
from sellerpro.services.warehouse_service import ensure_seeded

USER = "user-1"


def _draft(**overrides):
    values = {
        "name": "Nike Dunk Low Panda",
        "brand": "Nike",
        "sku": "DD1391-100",
        "size": "42",
        "price": 100.0,
        "stock": 2,
        "location": "A-01",
        "warehouse": "Hangzhou No.1",
    }
    values.update(overrides)
    return ProductDraft(**values)


class ProductServiceTest(unittest.TestCase):
    def setUp(self):
        self.engine = build_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=self.engine)
        self.db = make_session_factory(self.engine)()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _activities(self, type_=None):
        stmt = select(Activity).where(Activity.user_id == USER).order_by(Activity.id)
        if type_:
            stmt = stmt.where(Activity.type == type_)
        return list(self.db.execute(stmt).scalars())

    def _product_count(self):
        return self.db.execute(select(func.count(Product.id))).scalar_one()

    def test_create_inserts_product_and_logs_inbound(self):
        product, merged = upsert_product(self.db, USER, _draft(stock=3))

        self.assertFalse(merged)
        self.assertEqual(product.stock, 3)
        self.assertEqual(product.status, "instock")
        activities = self._activities()
        self.assertEqual(len(activities), 1)
        self.assertEqual(activities[0].type, "inbound")
        self.assertEqual(activities[0].count, 3)
        self.assertEqual(activities[0].price, 100.0)
        self.assertEqual(activities[0].cost, 100.0)
        self.assertEqual(activities[0].warehouse, "Hangzhou No.1")

    def test_defaults_fill_optional_fields(self):
        ensure_seeded(self.db, USER)
        product, _ = upsert_product(
            self.db,
            USER,
            ProductDraft(name="Yeezy 350", brand="Adidas", price=1500, stock=1),
        )
        self.assertEqual(product.size, "OS")
        self.assertEqual(product.sku, "N/A")
        self.assertEqual(product.location, "Unassigned")
        self.assertEqual(product.warehouse, "Hangzhou No.1")

    def test_missing_required_fields_are_rejected_before_write(self):
        for draft in (
            _draft(name=" "),
            _draft(brand=""),
            _draft(price=None),
            _draft(price=0),
        ):
            with self.subTest(draft=draft):
                with self.assertRaises(ValidationError):
                    upsert_product(self.db, USER, draft)
        self.assertEqual(self._product_count(), 0)
        self.assertEqual(self._activities(), [])

    def test_duplicate_requires_confirmation_without_side_effects(self):
        existing, _ = upsert_product(self.db, USER, _draft(price=100.0, stock=2))

        with self.assertRaises(MergeConfirmationRequired) as ctx:
            upsert_product(self.db, USER, _draft(price=130.0, stock=1))

        self.assertEqual(ctx.exception.details["existing_id"], existing.id)
        self.assertEqual(ctx.exception.details["existing_stock"], 2)
        self.assertEqual(ctx.exception.details["existing_price"], 100.0)
        self.db.refresh(existing)
        self.assertEqual(existing.stock, 2)
        self.assertEqual(existing.price, 100.0)
        self.assertEqual(self._product_count(), 1)
        self.assertEqual(len(self._activities()), 1)

    def test_confirmed_merge_blends_cost_and_logs_incoming_cost(self):
        existing, _ = upsert_product(self.db, USER, _draft(price=100.0, stock=2))

        product, merged = upsert_product(
            self.db,
            USER,
            _draft(price=130.0, stock=1, location=None, warehouse=None),
            confirm_merge=True,
        )

        self.assertTrue(merged)
        self.assertEqual(product.id, existing.id)
        self.assertEqual(product.stock, 3)
        self.assertEqual(product.price, 110.0)
        self.assertEqual(product.location, "A-01")
        self.assertEqual(product.warehouse, "Hangzhou No.1")
        self.assertEqual(self._product_count(), 1)

        inbound = self._activities("inbound")
        self.assertEqual(len(inbound), 2)
        self.assertEqual(inbound[-1].price, 130.0)
        self.assertEqual(inbound[-1].cost, 130.0)
        self.assertEqual(inbound[-1].count, 1)

    def test_merge_forces_instock_and_prefers_incoming_location(self):
        upsert_product(self.db, USER, _draft(status="shipping", stock=1))

        product, _ = upsert_product(
            self.db,
            USER,
            _draft(stock=1, location="B-07", warehouse="Shanghai Pudong"),
            confirm_merge=True,
        )

        self.assertEqual(product.status, "instock")
        self.assertEqual(product.location, "B-07")
        self.assertEqual(product.warehouse, "Shanghai Pudong")

    def test_merge_with_zero_combined_stock_keeps_existing_cost(self):
        upsert_product(self.db, USER, _draft(price=80.0, stock=0))

        product, merged = upsert_product(
            self.db, USER, _draft(price=95.0, stock=0), confirm_merge=True
        )

        self.assertTrue(merged)
        self.assertEqual(product.stock, 0)
        self.assertEqual(product.price, 80.0)

    def test_merge_weighted_cost(self):
        self.assertEqual(merge_weighted_cost(100.0, 2, 130.0, 1), 110.0)
        self.assertEqual(merge_weighted_cost(99.99, 3, 120.0, 7), 114.0)
        self.assertEqual(merge_weighted_cost(10.0, 1, 20.0, 2), 16.67)
        self.assertEqual(merge_weighted_cost(55.5, 0, 70.0, 0), 55.5)

    def test_edit_in_place_never_merges(self):
        first, _ = upsert_product(self.db, USER, _draft(sku="AAA", stock=1))
        second, _ = upsert_product(self.db, USER, _draft(sku="BBB", stock=4))

        edited, merged = upsert_product(
            self.db, USER, _draft(sku="AAA", stock=5, price=120.0), product_id=second.id
        )

        self.assertFalse(merged)
        self.assertEqual(edited.id, second.id)
        self.assertEqual(edited.stock, 5)
        self.assertEqual(edited.price, 120.0)
        self.db.refresh(first)
        self.assertEqual(first.stock, 1)
        self.assertEqual(self._product_count(), 2)
        self.assertEqual(len(self._activities("inbound")), 3)

    def test_edit_unknown_product_raises(self):
        with self.assertRaises(NotFoundError):
            upsert_product(self.db, USER, _draft(), product_id=999)

    def test_products_are_scoped_per_user(self):
        upsert_product(self.db, USER, _draft())
        _, merged = upsert_product(self.db, "user-2", _draft())
        self.assertFalse(merged)
        self.assertEqual(self._product_count(), 2)

    def test_outbound_decrements_and_logs_cost_before_sale(self):
        product, _ = upsert_product(self.db, USER, _draft(price=100.0, stock=3))

        sold = outbound_product(self.db, USER, product.id, selling_price=160.0, platform="StockX")

        self.assertEqual(sold.stock, 2)
        self.assertEqual(sold.status, "instock")
        outbound = self._activities("outbound")
        self.assertEqual(len(outbound), 1)
        self.assertEqual(outbound[0].price, 160.0)
        self.assertEqual(outbound[0].cost, 100.0)
        self.assertEqual(outbound[0].count, 1)
        self.assertEqual(outbound[0].platform, "StockX")
        self.assertEqual(outbound[0].warehouse, "Hangzhou No.1")

    def test_outbound_defaults_price_to_cost_and_platform(self):
        product, _ = upsert_product(self.db, USER, _draft(price=88.0, stock=1))

        sold = outbound_product(self.db, USER, product.id)

        self.assertEqual(sold.stock, 0)
        self.assertEqual(sold.status, "instock")
        outbound = self._activities("outbound")[0]
        self.assertEqual(outbound.price, 88.0)
        self.assertEqual(outbound.platform, "Dewu")

    def test_outbound_with_no_stock_fails_without_side_effects(self):
        product, _ = upsert_product(self.db, USER, _draft(stock=0))

        with self.assertRaises(InsufficientStockError):
            outbound_product(self.db, USER, product.id, selling_price=150.0)

        self.db.refresh(product)
        self.assertEqual(product.stock, 0)
        self.assertEqual(self._activities("outbound"), [])

    def test_outbound_rejects_negative_price(self):
        product, _ = upsert_product(self.db, USER, _draft(stock=1))
        with self.assertRaises(ValidationError):
            outbound_product(self.db, USER, product.id, selling_price=-1)
        self.db.refresh(product)
        self.assertEqual(product.stock, 1)

    def test_delete_keeps_history(self):
        product, _ = upsert_product(self.db, USER, _draft(stock=2))
        outbound_product(self.db, USER, product.id, selling_price=150.0)

        delete_product(self.db, USER, product.id)

        self.assertEqual(self._product_count(), 0)
        self.assertEqual(len(self._activities()), 2)
        with self.assertRaises(NotFoundError):
            delete_product(self.db, USER, product.id)

    def test_list_products_filters_and_paginates(self):
        upsert_product(self.db, USER, _draft(name="Jordan 1 Chicago", brand="Jordan", sku="J1"))
        upsert_product(self.db, USER, _draft(name="Dunk Low", brand="Nike", sku="D1"))
        upsert_product(
            self.db,
            USER,
            _draft(name="Samba OG", brand="Adidas", sku="S1", warehouse="Shanghai Pudong"),
        )
        upsert_product(self.db, USER, _draft(name="Dunk High", brand="Nike", sku="D2", status="shipping"))

        items, total = list_products(self.db, USER, warehouse="Hangzhou No.1")
        self.assertEqual(total, 3)
        self.assertEqual(items[0].sku, "D2")

        items, total = list_products(self.db, USER, search="dunk")
        self.assertEqual(total, 2)

        items, total = list_products(self.db, USER, search="ADIDAS")
        self.assertEqual([item.sku for item in items], ["S1"])

        items, total = list_products(self.db, USER, status="shipping")
        self.assertEqual([item.sku for item in items], ["D2"])

        items, total = list_products(self.db, USER, page=2, page_size=3)
        self.assertEqual(total, 4)
        self.assertEqual([item.sku for item in items], ["J1"])

        with self.assertRaises(ValidationError):
            list_products(self.db, USER, status="flaw")


    def test_edit_keeps_stored_optional_fields(self):
        product, _ = upsert_product(
            self.db,
            USER,
            _draft(
                warehouse="Shanghai Pudong",
                location="B-07",
                image_url="https://img.example.com/dunk.jpg",
            ),
        )

        edited, _ = upsert_product(
            self.db,
            USER,
            _draft(name="Nike Dunk Low Retro", location=None, warehouse=None),
            product_id=product.id,
        )

        self.assertEqual(edited.name, "Nike Dunk Low Retro")
        self.assertEqual(edited.warehouse, "Shanghai Pudong")
        self.assertEqual(edited.location, "B-07")
        self.assertEqual(edited.image_url, "https://img.example.com/dunk.jpg")

    def test_failed_merge_commit_leaves_line_and_log_untouched(self):
        existing, _ = upsert_product(self.db, USER, _draft(price=100.0, stock=2))

        with patch.object(
            self.db,
            "commit",
            side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error")),
        ):
            with self.assertRaises(PersistenceError):
                upsert_product(
                    self.db, USER, _draft(price=130.0, stock=1), confirm_merge=True
                )

        self.db.refresh(existing)
        self.assertEqual(existing.stock, 2)
        self.assertEqual(existing.price, 100.0)
        self.assertEqual(self._product_count(), 1)
        self.assertEqual(len(self._activities()), 1)


class ConcurrentOutboundTest(unittest.TestCase):
    """Two sessions on one SQLite file, as two requests would see it."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        path = os.path.join(self.tmpdir.name, "ledger.db")
        self.engine = build_engine("sqlite:///{}".format(path))
        Base.metadata.create_all(bind=self.engine)
        self.Session = make_session_factory(self.engine)

    def tearDown(self):
        self.engine.dispose()
        self.tmpdir.cleanup()

    def test_second_seller_of_last_unit_is_refused(self):
        with self.Session() as db:
            product, _ = upsert_product(db, USER, _draft(stock=1))
            product_id = product.id

        first = self.Session()
        second = self.Session()
        try:
            stale = get_product(second, USER, product_id)
            self.assertEqual(stale.stock, 1)

            outbound_product(first, USER, product_id, selling_price=150.0)

            with self.assertRaises(InsufficientStockError):
                outbound_product(second, USER, product_id, selling_price=150.0)
        finally:
            first.close()
            second.close()

        with self.Session() as db:
            self.assertEqual(get_product(db, USER, product_id).stock, 0)
            outbound = db.execute(
                select(func.count(Activity.id)).where(Activity.type == "outbound")
            ).scalar_one()
            self.assertEqual(outbound, 1)


if __name__ == "__main__":
    unittest.main()
