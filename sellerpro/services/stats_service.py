"""Dashboard and statistics projections.

Every function here is a pure read over a ``(products, activities)``
snapshot and an explicit ``now``; nothing is cached or written. Inputs only
need the model attributes, so ORM rows and transient instances both work.
"""

from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from sellerpro.core.constants import (
    ACTIVITY_INBOUND,
    ACTIVITY_OUTBOUND,
    ACTIVITY_PENDING,
    OTHER_BRAND,
    STATUS_INSTOCK,
    TOP_LIMIT,
    TREND_DAYS,
)
from sellerpro.core.dates import day_label, ensure_utc, local_date, utc_iso, utc_now
from sellerpro.models.activity import Activity
from sellerpro.models.product import Product


def load_snapshot(db: Session, user_id: str) -> tuple[list[Product], list[Activity]]:
    products = list(
        db.execute(
            select(Product)
            .where(Product.user_id == user_id)
            .order_by(Product.created_at.desc(), Product.id.desc())
        )
        .scalars()
        .all()
    )
    activities = list(
        db.execute(
            select(Activity)
            .where(Activity.user_id == user_id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
        )
        .scalars()
        .all()
    )
    return products, activities


def _now(now: datetime | None) -> datetime:
    return ensure_utc(now) if now is not None else utc_now()


def _today_prefix(now: datetime | None) -> str:
    return _now(now).date().isoformat()


def _is_today(activity, prefix: str) -> bool:
    # ISO date prefix match in UTC, not a local-day interval
    return utc_iso(activity.created_at).startswith(prefix)


def _units(activity) -> int:
    count = activity.count
    try:
        count = int(count)
    except (TypeError, ValueError):
        return 1
    return count if count > 0 else 1


def _ranked(totals: dict) -> list[dict]:
    # sorted() is stable, so ties keep first-seen order
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "value": value} for name, value in ranked]


def pending_count(activities: Iterable) -> int:
    return sum(1 for activity in activities if activity.type == ACTIVITY_PENDING)


def today_sales(activities: Iterable, now: datetime | None = None) -> dict:
    prefix = _today_prefix(now)
    amount = 0.0
    count = 0
    for activity in activities:
        if activity.type != ACTIVITY_OUTBOUND or not _is_today(activity, prefix):
            continue
        amount += float(activity.price or 0.0)
        count += 1
    return {"amount": amount, "count": count}


def inbound_today(activities: Iterable, now: datetime | None = None) -> int:
    prefix = _today_prefix(now)
    return sum(
        _units(activity)
        for activity in activities
        if activity.type == ACTIVITY_INBOUND and _is_today(activity, prefix)
    )


def _in_stock(products: Iterable, warehouse: str | None = None):
    for product in products:
        if product.status != STATUS_INSTOCK:
            continue
        if warehouse is not None and product.warehouse != warehouse:
            continue
        yield product


def total_stock(products: Iterable) -> int:
    return sum(int(product.stock or 0) for product in _in_stock(products))


def total_stock_for_warehouse(products: Iterable, name: str) -> int:
    return sum(int(product.stock or 0) for product in _in_stock(products, name))


def total_value_for_warehouse(products: Iterable, name: str) -> float:
    return sum(
        float(product.price or 0.0) * int(product.stock or 0)
        for product in _in_stock(products, name)
    )


def monthly_summary(activities: Iterable, now: datetime | None = None) -> dict:
    today = local_date(_now(now))
    sales_total = 0.0
    cost_total = 0.0
    inbound_count = 0
    outbound_count = 0

    for activity in activities:
        day = local_date(activity.created_at)
        if day is None or day.year != today.year or day.month != today.month:
            continue
        if activity.type == ACTIVITY_OUTBOUND:
            sales_total += float(activity.price or 0.0)
            cost_total += float(activity.cost or 0.0)
            outbound_count += 1
        elif activity.type == ACTIVITY_INBOUND:
            inbound_count += _units(activity)

    profit = sales_total - cost_total
    profit_rate = (profit / sales_total) * 100 if sales_total > 0 else 0.0
    return {
        "sales_total": sales_total,
        "cost_total": cost_total,
        "profit": profit,
        "profit_rate": profit_rate,
        "inbound_count": inbound_count,
        "outbound_count": outbound_count,
        # one unit per outbound row
        "sold_count": outbound_count,
    }


def sales_trend(
    activities: Iterable,
    now: datetime | None = None,
    days: int = TREND_DAYS,
) -> list[dict]:
    """Outbound revenue per local day for the last ``days`` days, oldest first."""
    today = local_date(_now(now))
    buckets = {today - timedelta(days=offset): 0.0 for offset in range(days - 1, -1, -1)}
    for activity in activities:
        if activity.type != ACTIVITY_OUTBOUND:
            continue
        day = local_date(activity.created_at)
        if day in buckets:
            buckets[day] += float(activity.price or 0.0)
    return [{"name": day_label(day), "value": value} for day, value in buckets.items()]


def top_brands(products: Iterable, limit: int = TOP_LIMIT) -> list[dict]:
    totals = {}
    for product in _in_stock(products):
        brand = (product.brand or "").strip() or OTHER_BRAND
        totals[brand] = totals.get(brand, 0) + int(product.stock or 0)
    return _ranked(totals)[:limit]


def top_products(activities: Iterable, limit: int = TOP_LIMIT) -> list[dict]:
    totals = {}
    for activity in activities:
        if activity.type != ACTIVITY_OUTBOUND:
            continue
        totals[activity.product_name] = totals.get(activity.product_name, 0) + 1
    return _ranked(totals)[:limit]


def inventory_overview(products: Iterable) -> dict:
    products = list(products)
    return {
        "total_stock": total_stock(products),
        "top_brands": top_brands(products),
    }


def statistics(products: Iterable, activities: Iterable, now: datetime | None = None) -> dict:
    activities = list(activities)
    return {
        "monthly": monthly_summary(activities, now),
        "sales_trend": sales_trend(activities, now),
        "top_brands": top_brands(products),
        "top_products": top_products(activities),
    }


def widget_payload(products: Iterable, activities: Iterable, now: datetime | None = None) -> dict:
    current = _now(now)
    return {
        "totalStock": total_stock(products),
        "inboundToday": inbound_today(activities, current),
        "lastUpdated": current.astimezone().strftime("%H:%M:%S"),
    }
