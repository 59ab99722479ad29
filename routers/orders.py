from fastapi import APIRouter, Query, Request
from starlette import status
from middleware.rate_limiter import limiter
from models.enums import OrderStatus
from schemas.order_schemas import (CreateOrderRequest, OrderListResponse, OrderResponse, Pagination,
                                   StatusHistoryEntry, StatusTransitionRequest, StatusTransitionResponse)
from schemas.rating_schemas import RatingRequest, RatingResponse
from services.delivery_service import DeliveryService
from services.order_service import OrderService
from services.rating_service import RatingService
from utils.deps import (actor_dependency, customer_dependency, db_dependency,
                        status_actor_dependency)


router = APIRouter(
    prefix="/orders",
    tags=["orders"]
)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=OrderResponse)
@limiter.limit("20/minute")
async def create_order(request: Request, body: CreateOrderRequest, actor: customer_dependency, db: db_dependency):
    order = OrderService(db).create_order(actor, body)
    return OrderResponse.from_order(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(actor: actor_dependency, db: db_dependency,
                      status_filter: OrderStatus | None = Query(default=None, alias="status"),
                      page: int = Query(default=1, ge=1),
                      limit: int = Query(default=10, ge=1, le=100)):
    orders, total = OrderService(db).list_orders(actor, status=status_filter, page=page, limit=limit)
    return OrderListResponse(
        orders=[OrderResponse.from_order(order) for order in orders],
        pagination=Pagination(page=page, limit=limit, total=total, pages=(total + limit - 1) // limit),
    )


@router.get("/{order_ref}", response_model=OrderResponse)
async def get_order(order_ref: str, actor: actor_dependency, db: db_dependency):
    order = OrderService(db).get_order(actor, order_ref)
    return OrderResponse.from_order(order)


@router.put("/{order_ref}", response_model=StatusTransitionResponse)
@limiter.limit("60/minute")
async def update_order_status(request: Request, order_ref: str, body: StatusTransitionRequest,
                              actor: status_actor_dependency, db: db_dependency):
    """
    Move an order along its lifecycle (vendor/admin; customers may only cancel).
    Admins may also hand the order to a delivery partner with ``deliveryPartner``.
    """
    delivery = DeliveryService(db)
    if body.delivery_partner is not None:
        delivery.authorize_assignment(actor, body.delivery_partner)

    entry = None
    if body.status is not None:
        order, entry = OrderService(db).transition(
            actor, order_ref, body.status, note=body.note, cancel_reason=body.cancellation_reason
        )
    if body.delivery_partner is not None:
        order = delivery.assign(actor, order_ref, body.delivery_partner)

    return StatusTransitionResponse(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        history_entry=StatusHistoryEntry.from_row(entry) if entry is not None else None,
        delivery_partner_id=order.delivery_partner_id,
        timeline=[StatusHistoryEntry.from_row(row) for row in order.status_history],
    )


@router.post("/{order_ref}/rate", response_model=RatingResponse)
@limiter.limit("10/minute")
async def rate_order(request: Request, order_ref: str, body: RatingRequest,
                     actor: customer_dependency, db: db_dependency):
    result = RatingService(db).record_rating(actor, order_ref, body)
    return RatingResponse(
        message="Rating submitted successfully",
        rated_products=result.rated_products,
        delivery_rating=result.delivery_rating,
    )
