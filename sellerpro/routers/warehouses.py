from typing import List

from fastapi import APIRouter, Depends

from sellerpro.core.exceptions import InventoryError
from sellerpro.dependencies import get_controller, http_error
from sellerpro.schemas.warehouse import (
    WarehouseRead,
    WarehouseRename,
    WarehouseRenameResult,
    WarehouseTotals,
)
from sellerpro.services import warehouse_service
from sellerpro.services.controller import InventoryController

router = APIRouter(prefix="/warehouses", tags=["Warehouses"])


@router.get("", response_model=List[WarehouseRead])
def list_warehouses(controller: InventoryController = Depends(get_controller)):
    return controller.warehouses


@router.post("/{warehouse_id}/default", response_model=WarehouseRead)
def set_default_warehouse(
    warehouse_id: int,
    controller: InventoryController = Depends(get_controller),
):
    try:
        return controller.set_default_warehouse(warehouse_id)
    except InventoryError as exc:
        raise http_error(exc) from exc


@router.patch("/{warehouse_id}", response_model=WarehouseRenameResult)
def rename_warehouse(
    warehouse_id: int,
    payload: WarehouseRename,
    controller: InventoryController = Depends(get_controller),
):
    try:
        warehouse, products_updated, activities_updated = controller.rename_warehouse(
            warehouse_id, payload.name, old_name=payload.old_name
        )
    except InventoryError as exc:
        raise http_error(exc) from exc
    return WarehouseRenameResult(
        warehouse=WarehouseRead.model_validate(warehouse),
        products_updated=products_updated,
        activities_updated=activities_updated,
    )


@router.get("/{warehouse_id}/totals", response_model=WarehouseTotals)
def warehouse_totals(
    warehouse_id: int,
    controller: InventoryController = Depends(get_controller),
):
    try:
        warehouse = warehouse_service.get_warehouse(
            controller.db, controller.user_id, warehouse_id
        )
    except InventoryError as exc:
        raise http_error(exc) from exc
    return controller.warehouse_totals(warehouse.name)
