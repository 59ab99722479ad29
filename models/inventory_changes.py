from core.database import Base
from sqlalchemy import (Column, Integer, ForeignKey, Enum)
from sqlalchemy.orm import relationship
from .enums import InventoryReason, enum_values
from .mixins import CreatedAtMixin

class InventoryChange(Base, CreatedAtMixin):
    """Audit trail of stock movements; one row per reserved order line."""
    __tablename__ = "inventory_changes"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)

    #relationships
    product = relationship("Product", back_populates="inventory_changes")

    change_amount = Column(Integer, nullable=False)
    reason = Column(Enum(InventoryReason, values_callable=enum_values, name="reason"), nullable=False)
