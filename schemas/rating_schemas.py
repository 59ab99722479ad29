from pydantic import Field
from schemas.base import CamelModel


class ItemRating(CamelModel):
    product_id: int
    rating: float = Field(allow_inf_nan=False)
    comment: str | None = None


class RatingRequest(CamelModel):
    """
    ``product_rating`` applies to every line item unless ``item_ratings``
    rates individual products. Finite values outside 1..5 are clamped, not
    rejected; NaN and infinities fail validation.
    """
    product_rating: float | None = Field(default=None, allow_inf_nan=False)
    delivery_rating: float | None = Field(default=None, allow_inf_nan=False)
    product_feedback: str | None = None
    delivery_feedback: str | None = None
    item_ratings: list[ItemRating] = Field(default_factory=list)


class RatingResponse(CamelModel):
    message: str
    rated_products: list[int]
    delivery_rating: int | None = None
