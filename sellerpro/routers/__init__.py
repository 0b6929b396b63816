from sellerpro.routers.activities import router as activities_router
from sellerpro.routers.dashboard import router as dashboard_router
from sellerpro.routers.health import router as health_router
from sellerpro.routers.products import router as products_router
from sellerpro.routers.warehouses import router as warehouses_router

__all__ = [
    "activities_router",
    "dashboard_router",
    "health_router",
    "products_router",
    "warehouses_router",
]
