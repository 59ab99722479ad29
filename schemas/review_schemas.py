from datetime import datetime
from pydantic import Field
from schemas.base import CamelModel
from schemas.order_schemas import Pagination


class ReviewRequest(CamelModel):
    product_id: int
    rating: int
    comment: str | None = Field(default=None, max_length=1000)
    order_id: int | None = None


class ReviewResponse(CamelModel):
    id: int
    product_id: int
    rating: int
    average_rating: float
    total_ratings: int


class ReviewAuthor(CamelModel):
    id: int
    name: str | None = None


class ReviewEntry(CamelModel):
    id: int
    rating: int
    comment: str | None = None
    order_id: int | None = None
    user: ReviewAuthor | None = None
    created_at: datetime | None = None


class RatingSummaryResponse(CamelModel):
    average_rating: float
    total_reviews: int
    distribution: dict[int, int]


class ReviewListResponse(CamelModel):
    reviews: list[ReviewEntry]
    summary: RatingSummaryResponse
    pagination: Pagination
