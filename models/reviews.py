from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin

class Review(Base, CreatedAtMixin, UpdatedAtMixin):
    """One review per (user, product); a second rating updates it in place."""
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_reviews_user_product"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)

    #relationships
    user = relationship("User", back_populates="reviews")
    product = relationship("Product", back_populates="reviews")

    rating = Column(Integer, nullable=False)
    comment = Column(String, default="")
