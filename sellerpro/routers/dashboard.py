from fastapi import APIRouter, Depends

from sellerpro.dependencies import get_controller
from sellerpro.schemas.stats import DashboardRead, InventoryOverview, StatsRead, WidgetData
from sellerpro.services.controller import InventoryController
from sellerpro.services.widget_service import get_widget_data

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_model=DashboardRead)
def dashboard(controller: InventoryController = Depends(get_controller)):
    return controller.dashboard()


@router.get("/stats", response_model=StatsRead)
def statistics(controller: InventoryController = Depends(get_controller)):
    return controller.statistics()


@router.get("/stats/inventory", response_model=InventoryOverview)
def inventory_overview(controller: InventoryController = Depends(get_controller)):
    return controller.inventory_overview()


@router.get("/widget", response_model=WidgetData | None)
def widget_data(controller: InventoryController = Depends(get_controller)):
    return get_widget_data(controller.db, controller.user_id)
