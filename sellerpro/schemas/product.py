from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ProductStatus = Literal["instock", "shipping", "sold"]


class ProductDraft(BaseModel):
    """Incoming product line, from the add form or an edit.

    Required-field checks live in the ledger so direct callers get the same
    rejection as HTTP callers.
    """

    name: str = ""
    brand: str = ""
    size: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[float] = None
    stock: int = Field(0, ge=0)
    image_url: Optional[str] = None
    status: ProductStatus = "instock"
    location: Optional[str] = None
    warehouse: Optional[str] = None


class ProductRead(BaseModel):
    id: int
    name: str
    brand: str
    size: str
    sku: str
    price: float
    stock: int
    image_url: Optional[str] = None
    status: str
    location: Optional[str] = None
    warehouse: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    items: List[ProductRead] = Field(default_factory=list)
    total: int
    page: int
    page_size: int
    pages: int


class OutboundRequest(BaseModel):
    selling_price: Optional[float] = Field(None, ge=0)
    platform: Optional[str] = None


class UpsertResult(BaseModel):
    product: ProductRead
    merged: bool
