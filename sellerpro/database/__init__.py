from sellerpro.database.base import Base
from sellerpro.database.engine import engine, ensure_sqlite_schema
from sellerpro.database.session import SessionLocal

__all__ = ["Base", "engine", "ensure_sqlite_schema", "SessionLocal"]
