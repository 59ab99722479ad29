from core.database import Base
from sqlalchemy.orm import relationship
from sqlalchemy import (Column, Integer, String, ForeignKey, Numeric, Enum, DateTime, JSON)
from .enums import OrderStatus, PaymentMethod, PaymentStatus, UserRole, enum_values
from .mixins import CreatedAtMixin, UpdatedAtMixin

class Order(Base, CreatedAtMixin, UpdatedAtMixin):
    """
    Root aggregate of the fulfillment core.

    ``status`` only moves along the transition table in
    ``services.order_lifecycle``; every move appends a row to
    ``status_history``. Invariant: ``total == subtotal + delivery_fee - discount``.
    """
    __tablename__ = "orders"

    #pk
    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, index=True, nullable=True)

    #fk
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    delivery_partner_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    #relationships
    customer = relationship("User", back_populates="orders", foreign_keys=[customer_id])
    vendor = relationship("Vendor", back_populates="orders")
    delivery_partner = relationship("User", back_populates="deliveries", foreign_keys=[delivery_partner_id])
    items = relationship("OrderItem", back_populates="order",
                         cascade="all, delete-orphan", order_by="OrderItem.id")
    status_history = relationship("OrderStatusHistory", back_populates="order",
                                  cascade="all, delete-orphan", order_by="OrderStatusHistory.id")

    # Pricing
    subtotal = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    promo_code = Column(String, nullable=True)

    status = Column(Enum(OrderStatus, values_callable=enum_values, name="order_status"),
                    default=OrderStatus.PENDING, nullable=False, index=True)

    payment_method = Column(Enum(PaymentMethod, values_callable=enum_values, name="payment_method"), nullable=False)
    payment_status = Column(Enum(PaymentStatus, values_callable=enum_values, name="payment_status"),
                            default=PaymentStatus.PENDING, nullable=False)

    delivery_address = Column(JSON, nullable=False)
    delivery_instructions = Column(String, nullable=True)

    # Delivery assignment
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    delivery_earnings = Column(Numeric(10, 2), nullable=True)

    # Post-delivery feedback
    rating = Column(Integer, nullable=True)
    review = Column(String, nullable=True)
    delivery_rating = Column(Integer, nullable=True)
    delivery_feedback = Column(String, nullable=True)

    # Phase timestamps
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    preparing_at = Column(DateTime(timezone=True), nullable=True)
    ready_at = Column(DateTime(timezone=True), nullable=True)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    on_the_way_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True, index=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(String, nullable=True)
    cancelled_by = Column(Enum(UserRole, values_callable=enum_values, name="user_role"), nullable=True)
