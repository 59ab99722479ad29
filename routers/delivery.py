from typing import Literal
from fastapi import APIRouter, Query, Request
from core.config import settings
from middleware.rate_limiter import limiter
from schemas.delivery_schemas import (DailyEarningsResponse, DeliveryActionRequest, EarningEntryResponse,
                                      EarningsResponse, EarningsTotals, NearbyOrderResponse,
                                      NearbyOrdersResponse)
from schemas.order_schemas import OrderResponse
from services.delivery_service import DeliveryService
from services.earnings_service import EarningsService
from services.rating_service import RatingService
from utils.deps import db_dependency, delivery_dependency


router = APIRouter(
    prefix="/delivery",
    tags=["delivery"]
)


@router.put("/orders", response_model=OrderResponse)
@limiter.limit("60/minute")
async def delivery_action(request: Request, body: DeliveryActionRequest,
                          actor: delivery_dependency, db: db_dependency):
    """
    accept | pickup | on_the_way | delivered, on behalf of the calling partner.
    """
    order = DeliveryService(db).perform(body.order_id, actor.user_id, body.action)
    return OrderResponse.from_order(order)


@router.get("/orders", response_model=list[OrderResponse])
async def partner_orders(actor: delivery_dependency, db: db_dependency,
                         kind: Literal["active", "history"] = Query(default="active", alias="type")):
    orders = DeliveryService(db).partner_orders(actor.user_id, kind)
    return [OrderResponse.from_order(order) for order in orders]


@router.get("/nearby", response_model=NearbyOrdersResponse)
async def nearby_orders(actor: delivery_dependency, db: db_dependency,
                        lat: float = Query(ge=-90, le=90),
                        lng: float = Query(ge=-180, le=180),
                        radius: float | None = Query(default=None, gt=0)):
    service = DeliveryService(db)
    orders = service.nearby_orders(lat, lng, radius)
    used_radius = radius if radius is not None else settings.NEARBY_DEFAULT_RADIUS_KM
    return NearbyOrdersResponse(
        orders=[NearbyOrderResponse.model_validate(order) for order in orders],
        total=len(orders),
        radius=used_radius,
    )


@router.get("/earnings", response_model=EarningsResponse)
async def earnings(actor: delivery_dependency, db: db_dependency,
                   period: Literal["today", "week", "month", "all"] = "week"):
    summary = EarningsService(db).summary(actor.user_id, period)
    return EarningsResponse(
        summary=EarningsTotals.model_validate(summary.summary),
        weekly_chart=[DailyEarningsResponse.model_validate(day) for day in summary.weekly_chart],
        recent_earnings=[EarningEntryResponse.model_validate(entry) for entry in summary.recent_earnings],
        rating=RatingService(db).partner_rating(actor.user_id),
    )
