from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from sqlalchemy import or_, update
from sqlalchemy.orm import Session
from core.exceptions import ExpiredError, MinOrderError, NotFoundError, UsageLimitError
from models.enums import DiscountType
from models.promo_codes import PromoCode
from utils.clock import as_utc, utcnow
from utils.logger import get_logger
from utils.money import round_half_up, to_decimal

logger = get_logger(__name__)


@dataclass
class DiscountQuote:
    promo_id: int
    code: str
    discount: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    description: str | None = None


def normalize_code(code: str) -> str:
    return code.strip().upper()


def compute_discount(subtotal, discount_type: DiscountType, discount_value, max_discount=None) -> Decimal:
    """
    Percentage: subtotal * value / 100 rounded half-up to a whole amount,
    capped at ``max_discount`` when one is set. Fixed: the value as-is.
    """
    if discount_type == DiscountType.PERCENTAGE:
        discount = round_half_up(to_decimal(subtotal) * to_decimal(discount_value) / 100)
        if max_discount is not None and discount > to_decimal(max_discount):
            discount = to_decimal(max_discount)
        return discount

    return to_decimal(discount_value)


class DiscountService:

    def __init__(self, db: Session):
        self.db = db

    def validate(self, code: str, subtotal, now: datetime | None = None) -> DiscountQuote:
        """
        Check a promo code against a subtotal and quote the discount.

        Checks, in order: exists and active, inside its validity window, under
        its usage limit, subtotal meets the minimum. Read-only: redemption is
        a separate atomic step taken when the order is created.
        """
        normalized = normalize_code(code)
        promo = self.db.query(PromoCode).filter(
            PromoCode.code == normalized,
            PromoCode.is_active == True
        ).one_or_none()

        if promo is None:
            logger.info("Unknown or inactive promo code", extra={"promo_code": normalized})
            raise NotFoundError("Promo code")

        now = now or utcnow()
        if promo.valid_from is not None and as_utc(promo.valid_from) > now:
            raise ExpiredError("Promo code is not yet active")
        if promo.valid_until is not None and as_utc(promo.valid_until) < now:
            raise ExpiredError("Promo code has expired")

        if promo.usage_limit is not None and promo.usage_count >= promo.usage_limit:
            raise UsageLimitError("Promo code usage limit reached")

        subtotal = to_decimal(subtotal)
        if promo.min_order_amount is not None and subtotal < promo.min_order_amount:
            raise MinOrderError(f"Minimum order amount is {to_decimal(promo.min_order_amount):.2f}")

        return DiscountQuote(
            promo_id=promo.id,
            code=promo.code,
            discount=compute_discount(subtotal, promo.discount_type, promo.discount_value, promo.max_discount),
            discount_type=promo.discount_type,
            discount_value=to_decimal(promo.discount_value),
            description=promo.description,
        )

    def redeem(self, promo_id: int):
        """
        Count one use of the promo, refusing once the limit is reached.

        Single conditional UPDATE so concurrent redemptions of a nearly
        exhausted code cannot overshoot ``usage_limit``. Does not commit.
        """
        result = self.db.execute(
            update(PromoCode)
            .where(
                PromoCode.id == promo_id,
                or_(PromoCode.usage_limit.is_(None), PromoCode.usage_count < PromoCode.usage_limit)
            )
            .values(usage_count=PromoCode.usage_count + 1)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            logger.warning("Promo redemption refused at limit", extra={"promo_id": promo_id})
            raise UsageLimitError("Promo code usage limit reached")
