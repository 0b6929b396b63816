from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ActivityRead(BaseModel):
    id: int
    type: str
    product_name: str
    sku: str
    size: Optional[str] = None
    price: float
    cost: float
    image_url: Optional[str] = None
    warehouse: Optional[str] = None
    count: int
    platform: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
