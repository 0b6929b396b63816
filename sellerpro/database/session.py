from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from sellerpro.database.engine import engine


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    # rows stay readable after commit; the controller reloads its snapshot anyway
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


SessionLocal = make_session_factory(engine)


def get_db():
    """Request-scoped session; anything left uncommitted is rolled back."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
