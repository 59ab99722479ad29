from fastapi import APIRouter, Request
from middleware.rate_limiter import limiter
from schemas.promo_schemas import PromoValidateRequest, PromoValidateResponse
from services.discount_service import DiscountService
from utils.deps import actor_dependency, db_dependency


router = APIRouter(
    prefix="/promo-codes",
    tags=["promo-codes"]
)


@router.post("/validate", response_model=PromoValidateResponse)
@limiter.limit("30/minute")
async def validate_promo(request: Request, body: PromoValidateRequest,
                         actor: actor_dependency, db: db_dependency):
    """Quote a promo code against a cart subtotal. Nothing is redeemed."""
    quote = DiscountService(db).validate(body.code, body.subtotal)
    return PromoValidateResponse(
        code=quote.code,
        discount=quote.discount,
        discount_type=quote.discount_type,
        discount_value=quote.discount_value,
        description=quote.description,
    )
