import json
import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sellerpro.core.constants import WIDGET_STORAGE_KEY
from sellerpro.models.preference import Preference
from sellerpro.services.stats_service import widget_payload

logger = logging.getLogger(__name__)


def _get_preference(db: Session, user_id: str, key: str) -> Preference | None:
    return db.execute(
        select(Preference).where(Preference.user_id == user_id, Preference.key == key)
    ).scalar_one_or_none()


def publish_widget_data(
    db: Session,
    user_id: str,
    products,
    activities,
    now: datetime | None = None,
) -> dict | None:
    """Store the home-screen widget payload; returns it, or None on failure.

    The widget is a one-way consumer, so a failed write is logged and the
    mutation that triggered it still stands.
    """
    payload = widget_payload(products, activities, now)
    try:
        preference = _get_preference(db, user_id, WIDGET_STORAGE_KEY)
        if preference is None:
            preference = Preference(user_id=user_id, key=WIDGET_STORAGE_KEY, value="")
            db.add(preference)
        preference.value = json.dumps(payload, ensure_ascii=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update widget data for user %s", user_id)
        return None

    logger.debug("Widget data updated for user %s: %s", user_id, payload)
    return payload


def get_widget_data(db: Session, user_id: str) -> dict | None:
    preference = _get_preference(db, user_id, WIDGET_STORAGE_KEY)
    if preference is None or not preference.value:
        return None
    try:
        return json.loads(preference.value)
    except ValueError:
        logger.warning("Discarding unreadable widget data for user %s", user_id)
        return None
