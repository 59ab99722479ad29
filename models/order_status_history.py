from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey, Enum)
from sqlalchemy.orm import relationship
from .enums import OrderStatus, UserRole, enum_values
from .mixins import CreatedAtMixin

class OrderStatusHistory(Base, CreatedAtMixin):
    """Append-only timeline entry. Rows are inserted, never updated."""
    __tablename__ = "order_status_history"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    #relationships
    order = relationship("Order", back_populates="status_history")

    status = Column(Enum(OrderStatus, values_callable=enum_values, name="order_status"), nullable=False)
    note = Column(String, default="")
    actor_role = Column(Enum(UserRole, values_callable=enum_values, name="user_role"), nullable=True)
