from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint

from sellerpro.database.base import Base


class Warehouse(Base):
    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False)

    name = Column(String, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_warehouses_user_name"),
        Index("idx_warehouses_user", "user_id"),
    )


__all__ = ["Warehouse"]
