from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Index, Integer, String

from sellerpro.database.base import Base


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False)

    type = Column(String, nullable=False)
    product_name = Column(String, nullable=False)
    sku = Column(String, nullable=False)
    size = Column(String)

    # outbound: sale price and the unit cost captured at the moment of sale
    price = Column(Float, nullable=False, default=0)
    cost = Column(Float, nullable=False, default=0)

    image_url = Column(String)
    warehouse = Column(String)
    count = Column(Integer, nullable=False, default=1)
    platform = Column(String)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_activities_user_created", "user_id", "created_at"),
        Index("idx_activities_user_warehouse", "user_id", "warehouse"),
    )


__all__ = ["Activity"]
