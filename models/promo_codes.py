from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean, Numeric, Enum, DateTime)
from .enums import DiscountType, enum_values
from .mixins import CreatedAtMixin, UpdatedAtMixin

class PromoCode(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "promo_codes"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    # Stored upper-case; lookups normalise the incoming code the same way
    code = Column(String, unique=True, nullable=False, index=True)
    description = Column(String)

    discount_type = Column(Enum(DiscountType, values_callable=enum_values, name="discount_type"), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    min_order_amount = Column(Numeric(10, 2), nullable=True)
    max_discount = Column(Numeric(10, 2), nullable=True)

    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, default=0, nullable=False)

    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
