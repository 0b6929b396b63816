import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.pool import StaticPool

from sellerpro.config import Settings, get_settings


app_settings: Settings = get_settings()
logger = logging.getLogger(__name__)


def _is_sqlite_memory(url: URL) -> bool:
    if url.database in (None, "", ":memory:"):
        return True
    return url.query.get("mode") == "memory"


def _install_sqlite_pragmas(engine: Engine, busy_timeout_ms: int, wal: bool) -> None:
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
            if wal:
                try:
                    cursor.execute("PRAGMA journal_mode=WAL")
                    cursor.execute("PRAGMA synchronous=NORMAL")
                except sqlite3.DatabaseError:
                    logger.warning("WAL journal mode unavailable; using default journal")
        finally:
            cursor.close()


def build_engine(database_url: str, timeout_seconds: int = 10) -> Engine:
    """Engine for the ledger store.

    ``timeout_seconds`` bounds every wait on the store: SQLite's busy lock
    and, for server databases, checkout from the connection pool.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True, pool_timeout=timeout_seconds)

    memory = _is_sqlite_memory(url)
    engine_kwargs: dict[str, object] = dict(
        pool_pre_ping=True,
        connect_args={"check_same_thread": False, "timeout": timeout_seconds},
    )
    if memory:
        # one shared connection, otherwise every checkout sees an empty database
        engine_kwargs.update(poolclass=StaticPool)
    engine = create_engine(url, **engine_kwargs)
    _install_sqlite_pragmas(engine, timeout_seconds * 1000, wal=not memory)
    return engine


engine = build_engine(app_settings.DATABASE_URL, app_settings.DB_TIMEOUT_SECONDS)


# Columns introduced after the first release; older SQLite files lack them.
_SQLITE_COLUMN_DEFAULTS = {
    "products": {
        "location": "TEXT",
        "updated_at": "DATETIME",
    },
    "activities": {
        "count": "INTEGER NOT NULL DEFAULT 1",
        "platform": "TEXT",
    },
}

_SQLITE_POST_ADD_UPDATES = {
    ("products", "updated_at"): (
        "UPDATE products SET updated_at = created_at WHERE updated_at IS NULL"
    ),
}


def _escape_sqlite_identifier(value: str) -> str:
    return value.replace('"', '""')


def _get_sqlite_columns(conn, table_name: str):
    escaped_table = _escape_sqlite_identifier(table_name)
    # noinspection SqlNoDataSourceInspection
    result = conn.exec_driver_sql(
        f'PRAGMA table_info("{escaped_table}")'
    ).mappings()
    return {row["name"] for row in result}


def ensure_sqlite_schema(bind: Engine | None = None) -> list[tuple[str, str]]:
    """Bring an older SQLite file up to the current column set.

    Returns the ``(table, column)`` pairs that were added.
    """
    bind = bind if bind is not None else engine
    if bind.url.get_backend_name() != "sqlite":
        return []

    fallback = app_settings.FALLBACK_WAREHOUSE
    added_columns = []
    with bind.connect() as conn:
        with conn.begin():
            for table_name, columns in _SQLITE_COLUMN_DEFAULTS.items():
                existing = _get_sqlite_columns(conn, table_name)
                if not existing:
                    continue
                for column_name, ddl in columns.items():
                    if column_name in existing:
                        continue
                    escaped_table = _escape_sqlite_identifier(table_name)
                    escaped_column = _escape_sqlite_identifier(column_name)
                    # noinspection SqlNoDataSourceInspection
                    conn.exec_driver_sql(
                        f'ALTER TABLE "{escaped_table}" ADD COLUMN "{escaped_column}" {ddl}'
                    )
                    added_columns.append((table_name, column_name))
                    logger.info("Added column %s.%s", table_name, column_name)
            for table_name, column_name in added_columns:
                update_stmt = _SQLITE_POST_ADD_UPDATES.get(
                    (table_name, column_name)
                )
                if update_stmt:
                    # noinspection SqlNoDataSourceInspection
                    conn.exec_driver_sql(update_stmt)

            # Legacy rows: zero/NULL counts read as one unit, blank warehouses
            # belong to the fallback warehouse.
            if _get_sqlite_columns(conn, "activities"):
                # noinspection SqlNoDataSourceInspection
                conn.exec_driver_sql(
                    "UPDATE activities SET count = 1 WHERE count IS NULL OR count < 1"
                )
            for table_name in ("products", "activities"):
                if not _get_sqlite_columns(conn, table_name):
                    continue
                # noinspection SqlNoDataSourceInspection
                result = conn.exec_driver_sql(
                    f"UPDATE {table_name} SET warehouse = ? "
                    "WHERE warehouse IS NULL OR TRIM(warehouse) = ''",
                    (fallback,),
                )
                if result.rowcount:
                    logger.warning(
                        "Assigned %s legacy %s rows to warehouse %s",
                        result.rowcount,
                        table_name,
                        fallback,
                    )
    return added_columns
