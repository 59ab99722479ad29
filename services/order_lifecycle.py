"""
ORDER LIFECYCLE RULES

The only allowed status transitions for orders, plus what each transition
stamps and tells the customer. No database access and no side effects:
services call into this module before writing anything.
"""

from models.enums import DeliveryAction, OrderStatus
from core.exceptions import InvalidTransitionError


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.PICKED_UP, OrderStatus.CANCELLED}),
    OrderStatus.PICKED_UP: frozenset({OrderStatus.ON_THE_WAY}),
    OrderStatus.ON_THE_WAY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Statuses driven by the assigned delivery partner rather than the vendor
DELIVERY_PHASE = frozenset({OrderStatus.PICKED_UP, OrderStatus.ON_THE_WAY, OrderStatus.DELIVERED})

# Orders a delivery partner may see while browsing for work
OPEN_FOR_DISCOVERY = (OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY)

PHASE_TIMESTAMPS: dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PREPARING: "preparing_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.PICKED_UP: "picked_up_at",
    OrderStatus.ON_THE_WAY: "on_the_way_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

CUSTOMER_MESSAGES: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Your order has been placed",
    OrderStatus.CONFIRMED: "Your order has been confirmed by the vendor",
    OrderStatus.PREPARING: "Your order is being prepared",
    OrderStatus.READY: "Your order is ready for pickup",
    OrderStatus.PICKED_UP: "Your order has been picked up by delivery partner",
    OrderStatus.ON_THE_WAY: "Your order is on the way",
    OrderStatus.DELIVERED: "Your order has been delivered",
    OrderStatus.CANCELLED: "Your order has been cancelled",
}

DELIVERY_ACTION_TARGETS: dict[DeliveryAction, OrderStatus] = {
    DeliveryAction.PICKUP: OrderStatus.PICKED_UP,
    DeliveryAction.ON_THE_WAY: OrderStatus.ON_THE_WAY,
    DeliveryAction.DELIVERED: OrderStatus.DELIVERED,
}

DELIVERY_ACTION_NOTES: dict[DeliveryAction, str] = {
    DeliveryAction.PICKUP: "Picked up by delivery partner",
    DeliveryAction.ON_THE_WAY: "On the way to delivery",
    DeliveryAction.DELIVERED: "Delivered by delivery partner",
}


def can_transition(*, from_status: OrderStatus, to_status: OrderStatus) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())


def validate_transition(*, from_status: OrderStatus, to_status: OrderStatus):
    if not can_transition(from_status=from_status, to_status=to_status):
        raise InvalidTransitionError(OrderStatus(from_status).value, OrderStatus(to_status).value)


def notification_title(status: OrderStatus) -> str:
    return f"Order {status.value.replace('_', ' ').upper()}"
