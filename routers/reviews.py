from fastapi import APIRouter, Query, Request, Response
from starlette import status
from middleware.rate_limiter import limiter
from schemas.order_schemas import Pagination
from schemas.review_schemas import (RatingSummaryResponse, ReviewEntry, ReviewListResponse, ReviewRequest,
                                    ReviewResponse)
from services.rating_service import RatingService
from utils.deps import actor_dependency, customer_dependency, db_dependency


router = APIRouter(
    prefix="/reviews",
    tags=["reviews"]
)


@router.get("", response_model=ReviewListResponse)
async def list_reviews(actor: actor_dependency, db: db_dependency,
                       product_id: int = Query(alias="productId"),
                       page: int = Query(default=1, ge=1),
                       limit: int = Query(default=10, ge=1, le=100)):
    reviews, total, summary = RatingService(db).product_reviews(product_id, page=page, limit=limit)
    return ReviewListResponse(
        reviews=[ReviewEntry.model_validate(review) for review in reviews],
        summary=RatingSummaryResponse(
            average_rating=summary.average_rating,
            total_reviews=summary.total_reviews,
            distribution=summary.distribution,
        ),
        pagination=Pagination(page=page, limit=limit, total=total, pages=(total + limit - 1) // limit),
    )


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def submit_review(request: Request, response: Response, body: ReviewRequest,
                        actor: customer_dependency, db: db_dependency):
    """
    Review a product directly. A second review of the same product replaces
    the first and answers 200 instead of 201.
    """
    result = RatingService(db).submit_review(
        actor, body.product_id, body.rating, comment=body.comment, order_id=body.order_id
    )
    if not result.created:
        response.status_code = status.HTTP_200_OK

    return ReviewResponse(
        id=result.review_id,
        product_id=result.product_id,
        rating=result.rating,
        average_rating=result.average_rating,
        total_ratings=result.total_ratings,
    )
