from datetime import date, datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            return date.fromisoformat(value_text[:10])
        except ValueError:
            return None
    return None


def ensure_utc(value):
    """Coerce a stored timestamp to an aware UTC datetime.

    SQLite hands back naive datetimes even for timezone-aware columns, and
    legacy rows may carry ISO strings; both are read as UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            value = datetime.fromisoformat(value_text.replace("Z", "+00:00"))
        except ValueError:
            return None
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_iso(value) -> str:
    value = ensure_utc(value)
    return value.isoformat() if value is not None else ""


def local_date(value):
    value = ensure_utc(value)
    if value is None:
        return None
    return value.astimezone().date()


def day_label(value: date) -> str:
    return "{}/{}".format(value.month, value.day)
