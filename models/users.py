from core.database import Base
from sqlalchemy import (Column, Integer, String, Enum)
from sqlalchemy.orm import relationship
from .enums import UserRole, enum_values
from .mixins import CreatedAtMixin

class User(Base, CreatedAtMixin):
    """
    Minimal identity record. Credentials and sessions live in the auth
    service; orders only need a stable id, a contact and a role.
    """
    __tablename__ = "users"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    orders = relationship("Order", back_populates="customer", foreign_keys="Order.customer_id")
    deliveries = relationship("Order", back_populates="delivery_partner", foreign_keys="Order.delivery_partner_id")
    reviews = relationship("Review", back_populates="user")

    name = Column(String)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String)
    role = Column(Enum(UserRole, values_callable=enum_values, name="user_role"),
                  default=UserRole.CUSTOMER, nullable=False)
