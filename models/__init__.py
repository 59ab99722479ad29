from models.users import User
from models.vendors import Vendor
from models.products import Product
from models.orders import Order
from models.order_items import OrderItem
from models.order_status_history import OrderStatusHistory
from models.promo_codes import PromoCode
from models.reviews import Review
from models.inventory_changes import InventoryChange
from models.notifications import Notification

__all__ = ["User", "Vendor", "Product", "Order", "OrderItem", "OrderStatusHistory",
           "PromoCode", "Review", "InventoryChange", "Notification"]
