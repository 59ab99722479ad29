from core.database import Base
from sqlalchemy import (Column, Integer, String, Float, ForeignKey)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin

class Vendor(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "vendors"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    #relationships
    owner = relationship("User")
    products = relationship("Product", back_populates="vendor")
    orders = relationship("Order", back_populates="vendor")

    store_name = Column(String, nullable=False)
    phone = Column(String)
    address = Column(String)
    city = Column(String)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Rating aggregate, recomputed from reviews
    average_rating = Column(Float, default=0.0, nullable=False)
    total_ratings = Column(Integer, default=0, nullable=False)
    total_orders = Column(Integer, default=0, nullable=False)
