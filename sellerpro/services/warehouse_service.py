"""Warehouse registry: seeding, default selection and rename cascade.

Products and activities reference a warehouse by *name*, so a rename has to
rewrite those rows too. All three updates run in one transaction; on any
failure the session is rolled back and nothing is renamed.
"""

import logging
from typing import cast

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from sellerpro.config import get_settings
from sellerpro.core.exceptions import (
    ConsistencyError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from sellerpro.models.activity import Activity
from sellerpro.models.product import Product
from sellerpro.models.warehouse import Warehouse

logger = logging.getLogger(__name__)


def list_warehouses(db: Session, user_id: str) -> list[Warehouse]:
    rows = (
        db.execute(
            select(Warehouse)
            .where(Warehouse.user_id == user_id)
            .order_by(Warehouse.created_at, Warehouse.id)
        )
        .scalars()
        .all()
    )
    return cast(list[Warehouse], list(rows))


def get_warehouse(db: Session, user_id: str, warehouse_id: int) -> Warehouse:
    warehouse = db.execute(
        select(Warehouse).where(
            Warehouse.user_id == user_id,
            Warehouse.id == warehouse_id,
        )
    ).scalar_one_or_none()
    if warehouse is None:
        raise NotFoundError("Warehouse {} not found".format(warehouse_id), warehouse_id=warehouse_id)
    return warehouse


def default_warehouse_name(db: Session, user_id: str) -> str:
    name = db.execute(
        select(Warehouse.name)
        .where(Warehouse.user_id == user_id, Warehouse.is_default.is_(True))
        .order_by(Warehouse.id)
        .limit(1)
    ).scalar_one_or_none()
    return name or get_settings().FALLBACK_WAREHOUSE


def ensure_seeded(db: Session, user_id: str) -> list[Warehouse]:
    existing = list_warehouses(db, user_id)
    if existing:
        return existing

    names = get_settings().default_warehouse_names()
    try:
        for index, name in enumerate(names):
            db.add(Warehouse(user_id=user_id, name=name, is_default=index == 0))
        db.commit()
    except IntegrityError:
        # another request seeded first; its rows win
        db.rollback()
        logger.warning("Warehouses for user %s were seeded concurrently", user_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Seeding warehouses failed for user %s", user_id)
        raise PersistenceError("Could not seed warehouses") from exc
    else:
        logger.info("Seeded %s warehouses for user %s", len(names), user_id)
    return list_warehouses(db, user_id)


def _count_defaults(db: Session, user_id: str) -> int:
    return db.execute(
        select(func.count(Warehouse.id)).where(
            Warehouse.user_id == user_id,
            Warehouse.is_default.is_(True),
        )
    ).scalar_one()


def set_default(db: Session, user_id: str, warehouse_id: int) -> Warehouse:
    target = get_warehouse(db, user_id, warehouse_id)

    # single conditional write: no window with zero or two defaults
    try:
        db.execute(
            update(Warehouse)
            .where(Warehouse.user_id == user_id)
            .values(is_default=case((Warehouse.id == target.id, True), else_=False))
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Setting default warehouse %s failed", warehouse_id)
        raise PersistenceError("Could not set default warehouse") from exc

    db.expire_all()
    defaults = _count_defaults(db, user_id)
    if defaults != 1:
        logger.warning(
            "User %s has %s default warehouses after selecting %s",
            user_id,
            defaults,
            warehouse_id,
        )
        raise ConsistencyError(
            "Default warehouse invariant violated",
            default_count=defaults,
        )

    logger.info("User %s default warehouse is now %s", user_id, target.name)
    db.refresh(target)
    return target


def rename(
    db: Session,
    user_id: str,
    warehouse_id: int,
    new_name: str,
    old_name: str | None = None,
) -> tuple[Warehouse, int, int]:
    """Rename a warehouse and every product/activity that points at it.

    Returns ``(warehouse, products_updated, activities_updated)``.
    """
    warehouse = get_warehouse(db, user_id, warehouse_id)
    new_name = (new_name or "").strip()
    if not new_name:
        raise ValidationError("Warehouse name must not be blank")

    current_name = warehouse.name
    if old_name is not None and old_name != current_name:
        raise ValidationError(
            "Warehouse was renamed elsewhere",
            expected=old_name,
            actual=current_name,
        )
    if new_name == current_name:
        return warehouse, 0, 0

    clash = db.execute(
        select(Warehouse.id).where(
            Warehouse.user_id == user_id,
            Warehouse.name == new_name,
            Warehouse.id != warehouse.id,
        )
    ).first()
    if clash is not None:
        raise ValidationError("Warehouse name already in use", name=new_name)

    try:
        warehouse.name = new_name
        products_result = db.execute(
            update(Product)
            .where(Product.user_id == user_id, Product.warehouse == current_name)
            .values(warehouse=new_name)
            .execution_options(synchronize_session=False)
        )
        activities_result = db.execute(
            update(Activity)
            .where(Activity.user_id == user_id, Activity.warehouse == current_name)
            .values(warehouse=new_name)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Renaming warehouse %s failed", warehouse_id)
        raise PersistenceError("Could not rename warehouse") from exc

    db.expire_all()
    logger.info(
        "Renamed warehouse %s -> %s (%s products, %s activities)",
        current_name,
        new_name,
        products_result.rowcount,
        activities_result.rowcount,
        extra={"user_id": user_id, "warehouse": new_name},
    )
    db.refresh(warehouse)
    return warehouse, products_result.rowcount, activities_result.rowcount
