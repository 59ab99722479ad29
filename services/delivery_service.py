from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, joinedload, selectinload
from core.config import settings
from core.exceptions import ConflictError, ForbiddenError, ValidationError
from models.enums import DeliveryAction, NotificationType, OrderStatus, UserRole
from models.orders import Order
from models.users import User
from models.vendors import Vendor
from services.notification_service import NotificationService
from services.order_lifecycle import (DELIVERY_ACTION_NOTES, DELIVERY_ACTION_TARGETS,
                                      OPEN_FOR_DISCOVERY, TERMINAL_STATES)
from services.order_service import OrderService
from services.unit_of_work import transaction
from utils.clock import utcnow
from utils.deps import Actor
from utils.geo import haversine_km, round_km
from utils.logger import get_logger
from utils.money import to_decimal

logger = get_logger(__name__)


@dataclass
class NearbyOrder:
    id: int
    order_number: str
    item_count: int
    total: Decimal
    delivery_fee: Decimal
    delivery_earnings: Decimal
    status: OrderStatus
    created_at: datetime | None
    delivery_address: dict
    vendor: Vendor
    pickup_distance: float | None
    delivery_distance: float | None
    total_distance: float | None


def _coordinates(address: dict | None) -> tuple[float, float] | None:
    if not address:
        return None
    lat = address.get("lat", address.get("latitude"))
    lng = address.get("lng", address.get("longitude"))
    if lat is None or lng is None:
        return None
    return float(lat), float(lng)


def earnings_for(delivery_fee) -> Decimal:
    """What a partner earns for an order: its delivery fee, or the flat fallback when free."""
    fee = to_decimal(delivery_fee)
    if fee > 0:
        return fee
    return to_decimal(settings.FALLBACK_DELIVERY_EARNINGS)


class DeliveryService:
    """
    Delivery assignment coordinator.

    A ready order is owned by at most one partner. Ownership is granted by a
    compare-and-swap on ``delivery_partner_id`` and checked on every later
    action.
    """

    def __init__(self, db: Session, notifier: NotificationService | None = None):
        self.db = db
        self.notifier = notifier or NotificationService(db)
        self.orders = OrderService(db, self.notifier)

    def perform(self, order_id: int, partner_id: int, action: DeliveryAction) -> Order:
        if action == DeliveryAction.ACCEPT:
            return self.accept(order_id, partner_id)
        return self.advance(order_id, partner_id, action)

    def accept(self, order_id: int, partner_id: int) -> Order:
        """
        Claim a ready, unassigned order for ``partner_id``.

        Exactly one of several concurrent callers wins; the others get
        ConflictError. Earnings are fixed at assignment time.
        """
        order = self.orders.find(order_id)
        now = utcnow()
        earnings = earnings_for(order.delivery_fee)

        with transaction(self.db, "Failed to assign order", order_id=order.id, partner_id=partner_id):
            result = self.db.execute(
                update(Order)
                .where(
                    Order.id == order.id,
                    Order.status == OrderStatus.READY,
                    Order.delivery_partner_id.is_(None),
                )
                .values(
                    delivery_partner_id=partner_id,
                    assigned_at=now,
                    delivery_earnings=earnings,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )

            if result.rowcount != 1:
                current = self.db.execute(
                    select(Order.status, Order.delivery_partner_id).where(Order.id == order.id)
                ).one()
                logger.info(
                    "Order accept refused",
                    extra={"order_id": order.id, "partner_id": partner_id,
                           "status": current.status.value, "assignee": current.delivery_partner_id}
                )
                if current.delivery_partner_id is not None:
                    raise ConflictError("Order already assigned")
                raise ConflictError("Order is not ready for pickup")

            self.notifier.emit(
                user_id=order.customer_id,
                type=NotificationType.ORDER_UPDATE,
                title="Order Assigned",
                message="A delivery partner has been assigned to your order",
                order_reference=order.order_number,
            )

        self.db.refresh(order)

        logger.info(
            "Delivery partner assigned",
            extra={"order_id": order.id, "order_number": order.order_number,
                   "partner_id": partner_id, "delivery_earnings": str(earnings)}
        )
        return order

    def authorize_assignment(self, actor: Actor, partner_id: int):
        if not actor.is_admin:
            raise ForbiddenError("Only admins can assign delivery partners")
        partner = self.db.get(User, partner_id)
        if partner is None or partner.role != UserRole.DELIVERY:
            raise ValidationError("Delivery partner not found")

    def assign(self, actor: Actor, order_ref: int | str, partner_id: int) -> Order:
        """
        Admin hand-assignment. Goes through the same compare-and-swap as a
        partner accepting, so it can never steal an order already claimed.
        """
        self.authorize_assignment(actor, partner_id)
        order = self.orders.find(order_ref)
        return self.accept(order.id, partner_id)

    def advance(self, order_id: int, partner_id: int, action: DeliveryAction) -> Order:
        target = DELIVERY_ACTION_TARGETS.get(action)
        if target is None:
            raise ValidationError("Invalid action")

        order = self.orders.find(order_id)
        if order.delivery_partner_id != partner_id:
            raise ForbiddenError("Not your order")

        extra_values = None
        if target == OrderStatus.DELIVERED:
            # Credit the partner: keep the amount fixed at assignment, fill it if missing
            extra_values = {
                "delivery_earnings": func.coalesce(Order.delivery_earnings, earnings_for(order.delivery_fee))
            }

        order, _ = self.orders.apply_transition(
            order,
            target,
            actor_role=UserRole.DELIVERY,
            note=DELIVERY_ACTION_NOTES[action],
            partner_id=partner_id,
            extra_values=extra_values,
        )

        if target == OrderStatus.DELIVERED:
            logger.info(
                "Delivery earnings credited",
                extra={"order_id": order.id, "partner_id": partner_id,
                       "delivery_earnings": str(order.delivery_earnings or 0)}
            )
        return order

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def nearby_orders(self, lat: float, lng: float, radius_km: float | None = None) -> list[NearbyOrder]:
        """
        Unassigned open orders around a partner, nearest pickup first.

        Pickup distance is partner -> vendor, delivery distance vendor ->
        customer, total their sum. Orders whose vendor has no coordinates can't
        be placed and are kept at the end. Advisory only: claiming still goes
        through ``accept``.
        """
        radius = radius_km if radius_km is not None else settings.NEARBY_DEFAULT_RADIUS_KM

        orders = (
            self.db.query(Order)
            .options(joinedload(Order.vendor), selectinload(Order.items))
            .filter(Order.delivery_partner_id.is_(None), Order.status.in_(OPEN_FOR_DISCOVERY))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(settings.NEARBY_MAX_RESULTS)
            .all()
        )

        results = []
        for order in orders:
            vendor = order.vendor
            vendor_point = None
            if vendor.latitude is not None and vendor.longitude is not None:
                vendor_point = (vendor.latitude, vendor.longitude)
            customer_point = _coordinates(order.delivery_address)

            pickup = haversine_km(lat, lng, *vendor_point) if vendor_point else None
            delivery = haversine_km(*vendor_point, *customer_point) if vendor_point and customer_point else None
            total = None
            if pickup is not None or delivery is not None:
                total = (pickup or 0.0) + (delivery or 0.0)

            if pickup is not None and pickup > radius:
                continue

            results.append(NearbyOrder(
                id=order.id,
                order_number=order.order_number,
                item_count=len(order.items),
                total=order.total,
                delivery_fee=order.delivery_fee,
                delivery_earnings=earnings_for(order.delivery_fee),
                status=order.status,
                created_at=order.created_at,
                delivery_address=order.delivery_address or {},
                vendor=vendor,
                pickup_distance=round_km(pickup),
                delivery_distance=round_km(delivery),
                total_distance=round_km(total),
            ))

        results.sort(key=lambda o: (o.pickup_distance is None, o.pickup_distance or 0.0))
        return results

    def partner_orders(self, partner_id: int, kind: str = "active") -> list[Order]:
        query = self.db.query(Order).options(
            selectinload(Order.items), selectinload(Order.status_history)
        ).filter(Order.delivery_partner_id == partner_id)

        if kind == "active":
            return query.filter(Order.status.notin_(TERMINAL_STATES)).order_by(Order.created_at.desc()).all()
        if kind == "history":
            return query.filter(Order.status.in_(TERMINAL_STATES)).order_by(Order.delivered_at.desc()).all()
        raise ValidationError("type must be 'active' or 'history'")
