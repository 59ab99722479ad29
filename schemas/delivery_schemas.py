import datetime as dt
from datetime import datetime
from models.enums import DeliveryAction, OrderStatus
from schemas.base import CamelModel


class DeliveryActionRequest(CamelModel):
    order_id: int
    action: DeliveryAction


class NearbyVendor(CamelModel):
    id: int
    store_name: str
    phone: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class NearbyOrderResponse(CamelModel):
    id: int
    order_number: str
    item_count: int
    total: float
    delivery_fee: float
    delivery_earnings: float
    status: OrderStatus
    created_at: datetime | None = None
    delivery_address: dict
    vendor: NearbyVendor
    pickup_distance: float | None = None
    delivery_distance: float | None = None
    total_distance: float | None = None


class NearbyOrdersResponse(CamelModel):
    orders: list[NearbyOrderResponse]
    total: int
    radius: float


class EarningsTotals(CamelModel):
    today_earnings: float
    week_earnings: float
    month_earnings: float
    all_time_earnings: float
    today_deliveries: int
    week_deliveries: int
    month_deliveries: int
    all_time_deliveries: int
    period: str
    period_earnings: float
    period_deliveries: int


class DailyEarningsResponse(CamelModel):
    day: str
    date: dt.date
    earnings: float
    deliveries: int


class EarningEntryResponse(CamelModel):
    order_number: str
    amount: float
    date: datetime | None = None
    item_count: int


class EarningsResponse(CamelModel):
    summary: EarningsTotals
    weekly_chart: list[DailyEarningsResponse]
    recent_earnings: list[EarningEntryResponse]
    rating: float | None = None
