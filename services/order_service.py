from datetime import datetime
from sqlalchemy import func, update
from sqlalchemy.orm import Session, selectinload
from core.config import settings
from core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models.enums import NotificationType, OrderStatus, PaymentStatus, UserRole
from models.order_items import OrderItem
from models.order_status_history import OrderStatusHistory
from models.orders import Order
from models.vendors import Vendor
from schemas.order_schemas import CreateOrderRequest
from services.discount_service import DiscountService
from services.inventory_service import InventoryService
from services.notification_service import NotificationService
from services.order_lifecycle import (CUSTOMER_MESSAGES, DELIVERY_PHASE, PHASE_TIMESTAMPS,
                                      notification_title, validate_transition)
from services.unit_of_work import transaction
from utils.clock import utcnow
from utils.deps import Actor
from utils.logger import get_logger
from utils.money import ZERO, to_decimal

logger = get_logger(__name__)


def make_order_number(order_id: int, placed_at: datetime) -> str:
    """Human-readable reference: OW + day + month + zero-padded sequence."""
    return f"OW{placed_at:%d%m}{order_id:06d}"


def delivery_fee_for(subtotal) -> int:
    if to_decimal(subtotal) >= settings.FREE_DELIVERY_THRESHOLD:
        return 0
    return settings.DELIVERY_FEE


class OrderService:
    """
    Order ledger: creation, lookup and the status state machine.

    Every write goes through a conditional UPDATE guarded by the status the
    caller observed, so two requests racing on one order cannot both apply.
    """

    def __init__(self, db: Session, notifier: NotificationService | None = None):
        self.db = db
        self.notifier = notifier or NotificationService(db)
        self.inventory = InventoryService(db)
        self.discounts = DiscountService(db)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_order(self, actor: Actor, request: CreateOrderRequest) -> Order:
        """
        Place an order for one vendor.

        Flow:
        1. Vendor must exist
        2. Reserve stock for every line (all or nothing)
        3. Price: subtotal, delivery fee (waived above the threshold), promo discount
        4. Redeem the promo atomically
        5. Insert the order with its items and first history entry
        6. Queue the customer notification and commit

        A failure at any step rolls back every stock decrement and the promo
        redemption with it.
        """
        if not request.items:
            raise ValidationError("Order must have at least one item")

        vendor = self.db.get(Vendor, request.vendor_id)
        if vendor is None:
            raise NotFoundError("Vendor")

        with transaction(self.db, "Failed to create order", vendor_id=vendor.id, user_id=actor.user_id):
            reserved = self.inventory.reserve(
                [(item.product_id, item.quantity) for item in request.items],
                vendor_id=vendor.id,
            )

            subtotal = sum((line.subtotal for line in reserved), ZERO)
            delivery_fee = to_decimal(delivery_fee_for(subtotal))

            discount = ZERO
            promo_code = None
            if request.promo_code:
                quote = self.discounts.validate(request.promo_code, subtotal)
                self.discounts.redeem(quote.promo_id)
                # A fixed promo never pays the customer to order
                discount = min(quote.discount, subtotal)
                promo_code = quote.code

            now = utcnow()
            order = Order(
                customer_id=actor.user_id,
                vendor_id=vendor.id,
                subtotal=subtotal,
                delivery_fee=delivery_fee,
                discount=discount,
                total=subtotal + delivery_fee - discount,
                promo_code=promo_code,
                status=OrderStatus.PENDING,
                payment_method=request.payment_method,
                payment_status=PaymentStatus.PENDING,
                delivery_address=request.delivery_address.model_dump(),
                delivery_instructions=request.instructions,
                created_at=now,
                updated_at=now,
            )
            order.items = [
                OrderItem(
                    product_id=line.product_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    unit=line.unit,
                    image=line.image,
                    subtotal=line.subtotal,
                )
                for line in reserved
            ]
            order.status_history.append(OrderStatusHistory(
                status=OrderStatus.PENDING,
                note="Order placed",
                actor_role=actor.role,
                created_at=now,
            ))

            self.db.add(order)
            self.db.flush()
            order.order_number = make_order_number(order.id, now)

            self.inventory.record_reservation(order.id, reserved)
            self.notifier.emit(
                user_id=order.customer_id,
                type=NotificationType.ORDER,
                title="Order Placed",
                message=CUSTOMER_MESSAGES[OrderStatus.PENDING],
                order_reference=order.order_number,
            )

        self.db.refresh(order)

        logger.info(
            "Order created",
            extra={
                "order_id": order.id,
                "order_number": order.order_number,
                "vendor_id": order.vendor_id,
                "total": str(order.total),
                "promo_code": order.promo_code,
            }
        )
        return order

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find(self, order_ref: int | str) -> Order:
        """Load an order by numeric id or order number, always from the database."""
        query = self.db.query(Order).options(
            selectinload(Order.items),
            selectinload(Order.status_history),
        ).populate_existing()

        ref = str(order_ref).strip()
        if ref.isdigit():
            order = query.filter(Order.id == int(ref)).one_or_none()
        else:
            order = query.filter(Order.order_number == ref).one_or_none()

        if order is None:
            raise NotFoundError("Order")
        return order

    def _owns_vendor(self, actor: Actor, vendor_id: int) -> bool:
        return self.db.query(Vendor.id).filter(
            Vendor.id == vendor_id,
            Vendor.owner_id == actor.user_id
        ).first() is not None

    def ensure_party(self, actor: Actor, order: Order):
        if actor.is_admin:
            return
        if actor.role == UserRole.CUSTOMER and order.customer_id == actor.user_id:
            return
        if actor.role == UserRole.DELIVERY and order.delivery_partner_id == actor.user_id:
            return
        if actor.role == UserRole.VENDOR and self._owns_vendor(actor, order.vendor_id):
            return
        raise ForbiddenError("Not your order")

    def get_order(self, actor: Actor, order_ref: int | str) -> Order:
        order = self.find(order_ref)
        self.ensure_party(actor, order)
        return order

    def list_orders(self, actor: Actor, status: OrderStatus | None = None,
                    page: int = 1, limit: int = 10) -> tuple[list[Order], int]:
        query = self.db.query(Order)

        if actor.role == UserRole.CUSTOMER:
            query = query.filter(Order.customer_id == actor.user_id)
        elif actor.role == UserRole.VENDOR:
            query = query.join(Vendor, Vendor.id == Order.vendor_id).filter(Vendor.owner_id == actor.user_id)
        elif actor.role == UserRole.DELIVERY:
            query = query.filter(Order.delivery_partner_id == actor.user_id)

        if status is not None:
            query = query.filter(Order.status == status)

        total = query.with_entities(func.count(Order.id)).scalar() or 0
        orders = (
            query.options(selectinload(Order.items), selectinload(Order.status_history))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return orders, total

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _authorize_transition(self, actor: Actor, order: Order, target: OrderStatus):
        if actor.is_admin:
            return

        if actor.role == UserRole.VENDOR:
            if not self._owns_vendor(actor, order.vendor_id):
                raise ForbiddenError("Not your order")
            if target in DELIVERY_PHASE:
                raise ForbiddenError("Delivery updates belong to the assigned delivery partner")
            return

        if actor.role == UserRole.CUSTOMER:
            if order.customer_id != actor.user_id:
                raise ForbiddenError("Not your order")
            if target != OrderStatus.CANCELLED:
                raise ForbiddenError("Customers can only cancel orders")
            return

        raise ForbiddenError("Delivery partners update orders through delivery actions")

    def transition(self, actor: Actor, order_ref: int | str, target: OrderStatus,
                   note: str | None = None, cancel_reason: str | None = None) -> tuple[Order, OrderStatusHistory]:
        order = self.find(order_ref)
        self._authorize_transition(actor, order, target)
        return self.apply_transition(order, target, actor_role=actor.role, note=note, cancel_reason=cancel_reason)

    def apply_transition(self, order: Order, target: OrderStatus, actor_role: UserRole,
                         note: str | None = None, cancel_reason: str | None = None,
                         partner_id: int | None = None,
                         extra_values: dict | None = None) -> tuple[Order, OrderStatusHistory]:
        """
        Move ``order`` to ``target`` if the table allows it from the status we read.

        The UPDATE is guarded by that observed status (and by the assignee when
        ``partner_id`` is given). If another request moved the order first no
        row matches and ConflictError is raised; nothing is written.
        """
        observed = order.status
        validate_transition(from_status=observed, to_status=target)

        now = utcnow()
        values = {"status": target, PHASE_TIMESTAMPS[target]: now, "updated_at": now}
        if target == OrderStatus.DELIVERED:
            values["payment_status"] = PaymentStatus.COMPLETED
        if target == OrderStatus.CANCELLED:
            values["cancel_reason"] = cancel_reason
            values["cancelled_by"] = actor_role
        if extra_values:
            values.update(extra_values)

        statement = update(Order).where(Order.id == order.id, Order.status == observed)
        if partner_id is not None:
            statement = statement.where(Order.delivery_partner_id == partner_id)

        with transaction(self.db, "Failed to update order", order_id=order.id):
            result = self.db.execute(statement.values(**values).execution_options(synchronize_session=False))
            if result.rowcount != 1:
                logger.warning(
                    "Stale status transition rejected",
                    extra={"order_id": order.id, "observed": observed.value, "target": target.value}
                )
                raise ConflictError("Order was updated by someone else, reload and try again")

            entry = OrderStatusHistory(
                order_id=order.id,
                status=target,
                note=note or "",
                actor_role=actor_role,
                created_at=now,
            )
            self.db.add(entry)
            self.notifier.emit(
                user_id=order.customer_id,
                type=NotificationType.ORDER_UPDATE,
                title=notification_title(target),
                message=CUSTOMER_MESSAGES[target],
                order_reference=order.order_number,
            )

        self.db.refresh(order)

        logger.info(
            f"Order moved {observed.value} -> {target.value}",
            extra={"order_id": order.id, "order_number": order.order_number, "actor_role": actor_role.value}
        )
        return order, entry
