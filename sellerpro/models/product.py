from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Index, Integer, String

from sellerpro.database.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False)

    name = Column(String, nullable=False)
    brand = Column(String, nullable=False)
    size = Column(String, nullable=False)
    sku = Column(String, nullable=False)

    # unit cost, weighted-averaged on merge
    price = Column(Float, nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)

    image_url = Column(String)
    status = Column(String, nullable=False, default="instock")
    location = Column(String)
    warehouse = Column(String)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_products_user_sku_size", "user_id", "sku", "size"),
        Index("idx_products_user_warehouse", "user_id", "warehouse"),
    )


__all__ = ["Product"]
