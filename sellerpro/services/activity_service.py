from datetime import datetime, time, timedelta, timezone
from typing import cast

from sqlalchemy import select
from sqlalchemy.orm import Session

from sellerpro.core.constants import ACTIVITY_TYPES
from sellerpro.core.dates import ensure_utc, normalize_date
from sellerpro.core.exceptions import ValidationError
from sellerpro.models.activity import Activity


def append_activity(
    db: Session,
    user_id: str,
    *,
    type: str,
    product_name: str,
    sku: str,
    size: str | None = None,
    price: float = 0.0,
    cost: float = 0.0,
    image_url: str | None = None,
    warehouse: str | None = None,
    count: int = 1,
    platform: str | None = None,
    created_at: datetime | None = None,
) -> Activity:
    """Stage one log row on the session; the caller commits it with the
    mutation it records."""
    if type not in ACTIVITY_TYPES:
        raise ValidationError("Unknown activity type: {}".format(type))
    if count is None or int(count) < 1:
        raise ValidationError("Activity count must be at least 1")

    activity = Activity(
        user_id=user_id,
        type=type,
        product_name=product_name,
        sku=sku,
        size=size,
        price=float(price or 0.0),
        cost=float(cost or 0.0),
        image_url=image_url,
        warehouse=warehouse,
        count=int(count),
        platform=platform,
        created_at=ensure_utc(created_at) or datetime.now(timezone.utc),
    )
    db.add(activity)
    return activity


def _day_start(value) -> datetime:
    day = normalize_date(value)
    if day is None:
        raise ValidationError("Invalid date: {}".format(value))
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def query_activities(
    db: Session,
    user_id: str,
    *,
    type: str | None = None,
    warehouse: str | None = None,
    date_from=None,
    date_to=None,
    limit: int | None = None,
) -> list[Activity]:
    """Activities newest first. ``date_from``/``date_to`` are inclusive UTC
    calendar dates."""
    stmt = select(Activity).where(Activity.user_id == user_id)
    if type is not None:
        if type not in ACTIVITY_TYPES:
            raise ValidationError("Unknown activity type: {}".format(type))
        stmt = stmt.where(Activity.type == type)
    if warehouse is not None:
        stmt = stmt.where(Activity.warehouse == warehouse)
    if date_from is not None:
        stmt = stmt.where(Activity.created_at >= _day_start(date_from))
    if date_to is not None:
        stmt = stmt.where(Activity.created_at < _day_start(date_to) + timedelta(days=1))
    stmt = stmt.order_by(Activity.created_at.desc(), Activity.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return cast(list[Activity], list(db.execute(stmt).scalars().all()))


def recent_activities(db: Session, user_id: str, limit: int = 10) -> list[Activity]:
    return query_activities(db, user_id, limit=limit)
