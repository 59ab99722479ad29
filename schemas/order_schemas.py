from datetime import datetime
from pydantic import Field, field_validator, model_validator
from models.enums import OrderStatus, PaymentMethod, PaymentStatus, UserRole
from schemas.base import CamelModel


class OrderItemRequest(CamelModel):
    product_id: int
    quantity: int = Field(gt=0)


class DeliveryAddress(CamelModel):
    address: str
    city: str | None = None
    pincode: str | None = None
    landmark: str | None = None
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)


class CreateOrderRequest(CamelModel):
    vendor_id: int
    items: list[OrderItemRequest]
    delivery_address: DeliveryAddress
    payment_method: PaymentMethod
    instructions: str | None = None
    promo_code: str | None = None

    @field_validator('promo_code')
    @classmethod
    def blank_promo_is_none(cls, value):
        if value is not None and not value.strip():
            return None
        return value


class StatusTransitionRequest(CamelModel):
    """A status change, an admin partner assignment (``deliveryPartner``), or both."""
    status: OrderStatus | None = None
    note: str | None = None
    cancellation_reason: str | None = None
    delivery_partner: int | None = None

    @model_validator(mode="after")
    def requires_an_update(self):
        if self.status is None and self.delivery_partner is None:
            raise ValueError("status or deliveryPartner is required")
        return self


class OrderItemResponse(CamelModel):
    product_id: int
    name: str
    unit_price: float
    quantity: int
    unit: str | None = None
    image: str | None = None
    subtotal: float


class StatusHistoryEntry(CamelModel):
    status: OrderStatus
    note: str | None = None
    actor_role: UserRole | None = None
    timestamp: datetime | None = None

    @classmethod
    def from_row(cls, row) -> "StatusHistoryEntry":
        return cls(status=row.status, note=row.note, actor_role=row.actor_role, timestamp=row.created_at)


class OrderResponse(CamelModel):
    id: int
    order_number: str
    customer_id: int
    vendor_id: int
    delivery_partner_id: int | None = None
    items: list[OrderItemResponse]
    subtotal: float
    delivery_fee: float
    discount: float
    total: float
    promo_code: str | None = None
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    delivery_address: dict
    instructions: str | None = None
    delivery_earnings: float | None = None
    timeline: list[StatusHistoryEntry]
    rating: int | None = None
    review: str | None = None
    delivery_rating: int | None = None
    delivery_feedback: str | None = None
    assigned_at: datetime | None = None
    confirmed_at: datetime | None = None
    preparing_at: datetime | None = None
    ready_at: datetime | None = None
    picked_up_at: datetime | None = None
    on_the_way_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None
    cancelled_by: UserRole | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            vendor_id=order.vendor_id,
            delivery_partner_id=order.delivery_partner_id,
            items=[OrderItemResponse.model_validate(item) for item in order.items],
            subtotal=order.subtotal,
            delivery_fee=order.delivery_fee,
            discount=order.discount,
            total=order.total,
            promo_code=order.promo_code,
            status=order.status,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            delivery_address=order.delivery_address or {},
            instructions=order.delivery_instructions,
            delivery_earnings=order.delivery_earnings,
            timeline=[StatusHistoryEntry.from_row(row) for row in order.status_history],
            rating=order.rating,
            review=order.review,
            delivery_rating=order.delivery_rating,
            delivery_feedback=order.delivery_feedback,
            assigned_at=order.assigned_at,
            confirmed_at=order.confirmed_at,
            preparing_at=order.preparing_at,
            ready_at=order.ready_at,
            picked_up_at=order.picked_up_at,
            on_the_way_at=order.on_the_way_at,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
            cancel_reason=order.cancel_reason,
            cancelled_by=order.cancelled_by,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class StatusTransitionResponse(CamelModel):
    id: int
    order_number: str
    status: OrderStatus
    history_entry: StatusHistoryEntry | None = None
    delivery_partner_id: int | None = None
    timeline: list[StatusHistoryEntry]


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderListResponse(CamelModel):
    orders: list[OrderResponse]
    pagination: Pagination
