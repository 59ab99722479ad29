import enum


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    COD = "cod"
    UPI = "upi"
    CARD = "card"
    ONLINE = "online"
    WALLET = "wallet"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    DELIVERY = "delivery"
    ADMIN = "admin"


class InventoryReason(str, enum.Enum):
    DECREMENT = "decrement"
    INCREMENT = "increment"


class NotificationType(str, enum.Enum):
    ORDER = "order"
    ORDER_UPDATE = "order_update"


def enum_values(enum_cls):
    """Persist enum *values* (``"picked_up"``) rather than member names."""
    return [member.value for member in enum_cls]


class DeliveryAction(str, enum.Enum):
    ACCEPT = "accept"
    PICKUP = "pickup"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
