from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from sellerpro.core.exceptions import InventoryError
from sellerpro.core.security import resolve_user_id
from sellerpro.database.session import get_db
from sellerpro.services.controller import InventoryController


def get_current_user_id(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    return resolve_user_id(authorization, header_user=x_user_id)


def get_controller(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> InventoryController:
    return InventoryController(db, user_id).refresh()


def http_error(exc: InventoryError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())


__all__ = ["get_controller", "get_current_user_id", "get_db", "http_error"]
