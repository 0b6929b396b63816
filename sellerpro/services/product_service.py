"""Product ledger: inbound upsert with merge-on-duplicate, delete, outbound.

A product line is identified by ``(sku, size)`` within one user's stock.
Creating a line that already exists merges into it at a weighted-average
unit cost. Every write and its activity row commit together.
"""

import logging
import math
from typing import cast

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sellerpro.config import get_settings
from sellerpro.core.constants import (
    ACTIVITY_INBOUND,
    ACTIVITY_OUTBOUND,
    DEFAULT_LOCATION,
    DEFAULT_SIZE,
    DEFAULT_SKU,
    PRODUCT_STATUSES,
    STATUS_INSTOCK,
)
from sellerpro.core.exceptions import (
    InsufficientStockError,
    MergeConfirmationRequired,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from sellerpro.models.product import Product
from sellerpro.schemas.product import ProductDraft
from sellerpro.services.activity_service import append_activity
from sellerpro.services.warehouse_service import default_warehouse_name

logger = logging.getLogger(__name__)


def round2(value: float) -> float:
    return round(float(value), 2)


def merge_weighted_cost(
    existing_price: float,
    existing_stock: int,
    incoming_price: float,
    incoming_stock: int,
) -> float:
    total_stock = existing_stock + incoming_stock
    if total_stock == 0:
        return existing_price
    total_value = existing_price * existing_stock + incoming_price * incoming_stock
    return round2(total_value / total_stock)


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _validate_draft(draft: ProductDraft) -> None:
    missing = []
    if not _clean(draft.name):
        missing.append("name")
    if not _clean(draft.brand):
        missing.append("brand")
    if draft.price is None or not draft.price:
        missing.append("price")
    if missing:
        raise ValidationError(
            "Missing fields: {}".format(", ".join(missing)),
            missing=missing,
        )
    if draft.price < 0 or not math.isfinite(draft.price):
        raise ValidationError("price must be a non-negative number")
    if draft.stock is None or draft.stock < 0:
        raise ValidationError("stock must be a non-negative integer")
    if draft.status not in PRODUCT_STATUSES:
        raise ValidationError("Unknown status: {}".format(draft.status))


def get_product(db: Session, user_id: str, product_id: int) -> Product:
    product = db.execute(
        select(Product).where(Product.user_id == user_id, Product.id == product_id)
    ).scalar_one_or_none()
    if product is None:
        raise NotFoundError("Product {} not found".format(product_id), product_id=product_id)
    return product


def find_duplicate(
    db: Session,
    user_id: str,
    sku: str,
    size: str,
    exclude_id: int | None = None,
) -> Product | None:
    stmt = select(Product).where(
        Product.user_id == user_id,
        Product.sku == sku,
        Product.size == size,
    )
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    return db.execute(stmt.order_by(Product.id).limit(1)).scalar_one_or_none()


def list_products(
    db: Session,
    user_id: str,
    *,
    warehouse: str | None = None,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> tuple[list[Product], int]:
    """One page of products, newest first, with the exact filtered total."""
    page_size = page_size or get_settings().PRODUCTS_PAGE_SIZE
    page = max(page, 1)

    filters = [Product.user_id == user_id]
    if warehouse is not None:
        filters.append(Product.warehouse == warehouse)
    if status is not None:
        if status not in PRODUCT_STATUSES:
            raise ValidationError("Unknown status: {}".format(status))
        filters.append(Product.status == status)
    query_text = (search or "").strip().lower()
    if query_text:
        pattern = "%{}%".format(query_text)
        filters.append(
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.sku).like(pattern),
                func.lower(Product.brand).like(pattern),
            )
        )

    total = db.execute(select(func.count(Product.id)).where(*filters)).scalar_one()
    rows = (
        db.execute(
            select(Product)
            .where(*filters)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        .scalars()
        .all()
    )
    return cast(list[Product], list(rows)), total


def upsert_product(
    db: Session,
    user_id: str,
    draft: ProductDraft,
    *,
    product_id: int | None = None,
    confirm_merge: bool = False,
) -> tuple[Product, bool]:
    """Insert, edit in place, or merge an inbound product line.

    Returns ``(product, merged)``. Creating a line whose ``(sku, size)``
    already exists raises :class:`MergeConfirmationRequired` unless
    ``confirm_merge`` is set.
    """
    _validate_draft(draft)

    sku = _clean(draft.sku) or DEFAULT_SKU
    size = _clean(draft.size) or DEFAULT_SIZE
    incoming_price = float(draft.price)
    incoming_stock = int(draft.stock)
    location = _clean(draft.location)
    warehouse = _clean(draft.warehouse)

    target = get_product(db, user_id, product_id) if product_id is not None else None
    existing = find_duplicate(db, user_id, sku, size, exclude_id=product_id)
    merged = existing is not None and target is None

    if merged:
        if not confirm_merge:
            raise MergeConfirmationRequired(
                existing.id, sku, size, existing.stock, existing.price
            )
        product = existing
        product.price = merge_weighted_cost(
            existing.price, existing.stock, incoming_price, incoming_stock
        )
        product.stock = existing.stock + incoming_stock
        product.location = location or existing.location
        product.warehouse = (
            warehouse or existing.warehouse or get_settings().FALLBACK_WAREHOUSE
        )
        product.status = STATUS_INSTOCK
    else:
        image_url = _clean(draft.image_url)
        if target is not None:
            # an edit keeps what the draft leaves blank
            product = target
            image_url = image_url or target.image_url
            location = location or target.location
            warehouse = warehouse or target.warehouse
        else:
            product = Product(user_id=user_id)
        product.name = _clean(draft.name)
        product.brand = _clean(draft.brand)
        product.size = size
        product.sku = sku
        product.price = incoming_price
        product.stock = incoming_stock
        product.image_url = image_url
        product.status = draft.status
        product.location = location or DEFAULT_LOCATION
        product.warehouse = warehouse or default_warehouse_name(db, user_id)
        if target is None:
            db.add(product)

    # the log keeps the incoming lot's own cost, not the blended one
    try:
        append_activity(
            db,
            user_id,
            type=ACTIVITY_INBOUND,
            product_name=product.name,
            sku=product.sku,
            size=product.size,
            price=incoming_price,
            cost=incoming_price,
            image_url=product.image_url,
            warehouse=product.warehouse,
            count=max(incoming_stock, 1),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Saving product %s/%s failed", sku, size)
        raise PersistenceError("Could not save product") from exc

    db.refresh(product)
    context = {
        "user_id": user_id,
        "product_id": product.id,
        "warehouse": product.warehouse,
        "activity_type": ACTIVITY_INBOUND,
    }
    if merged:
        logger.info(
            "Merged %s x %s/%s into product %s (stock %s, cost %.2f)",
            incoming_stock,
            sku,
            size,
            product.id,
            product.stock,
            product.price,
            extra=context,
        )
    else:
        logger.info("Saved product %s (%s/%s)", product.id, sku, size, extra=context)
    return product, merged


def delete_product(db: Session, user_id: str, product_id: int) -> None:
    """Hard delete. Activities for the line stay in the log."""
    product = get_product(db, user_id, product_id)
    try:
        db.delete(product)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Deleting product %s failed", product_id)
        raise PersistenceError("Could not delete product") from exc
    logger.info("Deleted product %s", product_id, extra={"user_id": user_id, "product_id": product_id})


def outbound_product(
    db: Session,
    user_id: str,
    product_id: int,
    selling_price: float | None = None,
    platform: str | None = None,
) -> Product:
    """Sell one unit: stock - 1 plus one outbound activity.

    Status is left alone; a line at zero stock stays ``instock`` until the
    operator changes it.
    """
    product = get_product(db, user_id, product_id)
    if product.stock is None or product.stock < 1:
        raise InsufficientStockError(product.id, product.stock or 0)

    unit_cost = float(product.price)
    if selling_price is None:
        selling_price = unit_cost
    selling_price = float(selling_price)
    if selling_price < 0 or not math.isfinite(selling_price):
        raise ValidationError("selling_price must be a non-negative number")
    platform = _clean(platform) or get_settings().DEFAULT_PLATFORM

    try:
        result = db.execute(
            update(Product)
            .where(
                Product.user_id == user_id,
                Product.id == product.id,
                Product.stock >= 1,
            )
            .values(stock=Product.stock - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            db.refresh(product)
            raise InsufficientStockError(product.id, product.stock or 0)

        append_activity(
            db,
            user_id,
            type=ACTIVITY_OUTBOUND,
            product_name=product.name,
            sku=product.sku,
            size=product.size,
            price=selling_price,
            cost=unit_cost,
            image_url=product.image_url,
            warehouse=product.warehouse,
            count=1,
            platform=platform,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Outbound of product %s failed", product_id)
        raise PersistenceError("Could not record outbound") from exc

    db.refresh(product)
    logger.info(
        "Outbound product %s on %s at %.2f (stock now %s)",
        product.id,
        platform,
        selling_price,
        product.stock,
        extra={
            "user_id": user_id,
            "product_id": product.id,
            "warehouse": product.warehouse,
            "activity_type": ACTIVITY_OUTBOUND,
        },
    )
    return product
