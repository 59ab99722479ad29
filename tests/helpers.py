"""Plain helpers shared by the test modules and conftest."""

from datetime import timedelta
from jose import jwt
from core.config import settings
from models.enums import PaymentMethod
from models.users import User
from models.vendors import Vendor
from schemas.order_schemas import CreateOrderRequest
from utils.clock import utcnow
from utils.deps import Actor

DELIVERY_ADDRESS = {
    "address": "221 Residency Road",
    "city": "Bengaluru",
    "pincode": "560025",
    "lat": 12.9600,
    "lng": 77.6000,
}


def make_token(user: User, token_type: str = "access") -> str:
    payload = {
        "id": user.id,
        "role": user.role.value,
        "type": token_type,
        "exp": utcnow() + timedelta(minutes=30),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}


def actor_for(user: User) -> Actor:
    return Actor(user_id=user.id, role=user.role)


def order_request(vendor: Vendor, lines, promo_code: str | None = None,
                  payment_method: PaymentMethod = PaymentMethod.COD) -> CreateOrderRequest:
    return CreateOrderRequest(
        vendor_id=vendor.id,
        items=[{"product_id": product.id, "quantity": quantity} for product, quantity in lines],
        delivery_address=DELIVERY_ADDRESS,
        payment_method=payment_method,
        promo_code=promo_code,
    )
