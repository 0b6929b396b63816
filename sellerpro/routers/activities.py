from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from sellerpro.core.exceptions import InventoryError
from sellerpro.dependencies import get_controller, http_error
from sellerpro.schemas.activity import ActivityRead
from sellerpro.services.activity_service import query_activities
from sellerpro.services.controller import InventoryController

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.get("", response_model=List[ActivityRead])
def list_activities(
    type: Optional[str] = Query(None, description="inbound, outbound or pending"),
    warehouse: Optional[str] = Query(None, description="Exact warehouse name"),
    date_from: Optional[date] = Query(None, description="First day (inclusive)"),
    date_to: Optional[date] = Query(None, description="Last day (inclusive)"),
    limit: int = Query(200, ge=1, le=2000, description="Max records to return"),
    controller: InventoryController = Depends(get_controller),
):
    try:
        return query_activities(
            controller.db,
            controller.user_id,
            type=type,
            warehouse=warehouse,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
        )
    except InventoryError as exc:
        raise http_error(exc) from exc
