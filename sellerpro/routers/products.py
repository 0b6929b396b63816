import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from sellerpro.config import get_settings
from sellerpro.core.exceptions import InventoryError
from sellerpro.dependencies import get_controller, http_error
from sellerpro.schemas.product import (
    OutboundRequest,
    ProductDraft,
    ProductPage,
    ProductRead,
    UpsertResult,
)
from sellerpro.services import product_service
from sellerpro.services.controller import InventoryController

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=ProductPage)
def list_products(
    warehouse: Optional[str] = Query(None, description="Exact warehouse name"),
    status: Optional[str] = Query(None, description="instock, shipping or sold"),
    q: Optional[str] = Query(None, description="Search name, SKU or brand"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=500),
    controller: InventoryController = Depends(get_controller),
):
    try:
        items, total = product_service.list_products(
            controller.db,
            controller.user_id,
            warehouse=warehouse,
            status=status,
            search=q,
            page=page,
            page_size=page_size,
        )
    except InventoryError as exc:
        raise http_error(exc) from exc
    size = page_size or get_settings().PRODUCTS_PAGE_SIZE
    return ProductPage(
        items=[ProductRead.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=size,
        pages=math.ceil(total / size) if total else 0,
    )


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, controller: InventoryController = Depends(get_controller)):
    try:
        return product_service.get_product(controller.db, controller.user_id, product_id)
    except InventoryError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=UpsertResult, status_code=201)
def create_product(
    payload: ProductDraft,
    confirm_merge: bool = Query(False, description="Merge into an existing SKU/size line"),
    controller: InventoryController = Depends(get_controller),
):
    try:
        product, merged = controller.add_or_update_product(payload, confirm_merge=confirm_merge)
    except InventoryError as exc:
        raise http_error(exc) from exc
    return UpsertResult(product=ProductRead.model_validate(product), merged=merged)


@router.put("/{product_id}", response_model=UpsertResult)
def update_product(
    product_id: int,
    payload: ProductDraft,
    controller: InventoryController = Depends(get_controller),
):
    try:
        product, merged = controller.add_or_update_product(payload, product_id=product_id)
    except InventoryError as exc:
        raise http_error(exc) from exc
    return UpsertResult(product=ProductRead.model_validate(product), merged=merged)


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    confirm: bool = Query(False, description="Must be true to delete"),
    controller: InventoryController = Depends(get_controller),
):
    if not confirm:
        raise HTTPException(status_code=400, detail="Deletion must be confirmed.")
    try:
        controller.delete_product(product_id)
    except InventoryError as exc:
        raise http_error(exc) from exc


@router.post("/{product_id}/outbound", response_model=ProductRead)
def outbound_product(
    product_id: int,
    payload: OutboundRequest,
    controller: InventoryController = Depends(get_controller),
):
    try:
        return controller.outbound_product(
            product_id,
            selling_price=payload.selling_price,
            platform=payload.platform,
        )
    except InventoryError as exc:
        raise http_error(exc) from exc
