from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class WarehouseRead(BaseModel):
    id: int
    name: str
    is_default: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WarehouseRename(BaseModel):
    name: str
    old_name: Optional[str] = None


class WarehouseRenameResult(BaseModel):
    warehouse: WarehouseRead
    products_updated: int
    activities_updated: int


class WarehouseTotals(BaseModel):
    warehouse: str
    total_stock: int
    total_value: float
