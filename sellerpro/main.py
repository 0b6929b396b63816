from contextlib import asynccontextmanager

from fastapi import FastAPI

from sellerpro.config import Settings, get_settings
from sellerpro.core.logging import setup_logging
from sellerpro.database import Base, engine, ensure_sqlite_schema
from sellerpro.models import import_all_models
from sellerpro.routers import (
    activities_router,
    dashboard_router,
    health_router,
    products_router,
    warehouses_router,
)

settings: Settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    import_all_models()
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(health_router)
app.include_router(warehouses_router)
app.include_router(products_router)
app.include_router(activities_router)
app.include_router(dashboard_router)


__all__ = ["app"]
