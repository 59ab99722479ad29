from core.database import Base
from sqlalchemy import (Column, Integer, String, Float, ForeignKey, Numeric, CheckConstraint)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin

class Product(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)

    #relationships
    vendor = relationship("Vendor", back_populates="products")
    order_items = relationship("OrderItem", back_populates="product")
    inventory_changes = relationship("InventoryChange", back_populates="product")
    reviews = relationship("Review", back_populates="product")

    name = Column(String, nullable=False)
    description = Column(String)
    price = Column(Numeric(10, 2), nullable=False)
    unit = Column(String)
    image_url = Column(String)
    stock = Column(Integer, default=0, nullable=False)

    # Rating aggregate, recomputed from reviews
    average_rating = Column(Float, default=0.0, nullable=False)
    total_ratings = Column(Integer, default=0, nullable=False)
