from pydantic import Field, field_validator
from models.enums import DiscountType
from schemas.base import CamelModel


class PromoValidateRequest(CamelModel):
    code: str
    subtotal: float = Field(ge=0)

    @field_validator('code')
    @classmethod
    def validate_code(cls, value):
        if not value or not value.strip():
            raise ValueError('Promo code is required')
        return value.strip()


class PromoValidateResponse(CamelModel):
    code: str
    discount: float
    discount_type: DiscountType
    discount_value: float
    description: str | None = None
