from typing import List

from pydantic import BaseModel, Field

from sellerpro.schemas.activity import ActivityRead


class TodaySales(BaseModel):
    amount: float
    count: int


class DashboardRead(BaseModel):
    pending_count: int
    today_sales: TodaySales
    recent_activities: List[ActivityRead] = Field(default_factory=list)


class MonthlySummary(BaseModel):
    sales_total: float
    cost_total: float
    profit: float
    profit_rate: float
    inbound_count: int
    outbound_count: int
    sold_count: int


class TrendPoint(BaseModel):
    name: str
    value: float


class RankedEntry(BaseModel):
    name: str
    value: float


class StatsRead(BaseModel):
    monthly: MonthlySummary
    sales_trend: List[TrendPoint]
    top_brands: List[RankedEntry]
    top_products: List[RankedEntry]


class InventoryOverview(BaseModel):
    total_stock: int
    top_brands: List[RankedEntry]


class WidgetData(BaseModel):
    totalStock: int
    inboundToday: int
    lastUpdated: str
